"""Single-command-at-a-time npm orchestrator.

NpmCommander turns install/uninstall/search/update requests into npm
invocations, relays the captured output to its log channel, and asks the
owning controller to refresh after every mutating operation. No exception
escapes a public operation: failures are published on the exception channel
and reported as ``False`` or an empty list.

Only one command handle is tracked. Starting a second operation before the
first completes retargets cancel_current_command() at the newer command;
callers that overlap operations must serialize them themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

from commands.descriptor import (
    CommandDescriptor,
    install_command,
    search_command,
    uninstall_command,
    update_command,
)
from commands.runner import NpmCommand, create_command
from common.logging_utils import extra_context, is_debug_enabled
from constants import CommandKind, DependencyType
from events import LogEventChannel
from models import Package

logger = logging.getLogger(__name__)

CommandFactory = Callable[[CommandDescriptor], NpmCommand]


@dataclass
class CommandResult:
    """Outcome of one commander operation."""
    success: bool
    kind: Optional[CommandKind] = None
    packages: List[Package] = field(default_factory=list)
    error: Optional[BaseException] = None
    cancelled: bool = False


class NpmCommander:
    """Runs npm operations on behalf of a controller.

    Args:
        controller: Owning model. Must expose full_path_to_root_package_directory,
            path_to_npm, use_fallback_if_npm_not_found, root_package, refresh()
            and the log_output/log_error/log_exception sinks.
        command_factory: Builds the execution primitive for a descriptor.
    """

    def __init__(self, controller: Any, command_factory: Optional[CommandFactory] = None):
        self._controller = controller
        self._command_factory = command_factory or create_command
        self._command: Optional[NpmCommand] = None
        self._last_result: Optional[CommandResult] = None
        self._disposed = False
        self.events = LogEventChannel(sender=self)
        self.events.subscribe_output(controller.log_output)
        self.events.subscribe_error(controller.log_error)
        self.events.subscribe_exception(controller.log_exception)

    @property
    def current_command(self) -> Optional[NpmCommand]:
        return self._command

    @property
    def last_result(self) -> Optional[CommandResult]:
        return self._last_result

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Detach from the controller's sinks. Safe to call repeatedly."""
        if self._disposed:
            return
        self._disposed = True
        self.events.unsubscribe_output(self._controller.log_output)
        self.events.unsubscribe_error(self._controller.log_error)
        self.events.unsubscribe_exception(self._controller.log_exception)

    def __enter__(self) -> "NpmCommander":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def cancel_current_command(self) -> None:
        if self._command is not None:
            self._command.cancel_current_task()

    # ---------- operations ----------

    async def install_package(
        self,
        package_name: str,
        version_range: Optional[str] = None,
        dependency_type: DependencyType = DependencyType.STANDARD,
        global_: bool = False,
    ) -> bool:
        def build() -> CommandDescriptor:
            return install_command(
                self._controller.full_path_to_root_package_directory,
                package_name,
                version_range,
                dependency_type,
                global_,
                self._controller.path_to_npm,
                self._controller.use_fallback_if_npm_not_found,
            )

        result = await self._run(build, refresh=True)
        return result.success

    async def install_global_package(self, package_name: str, version_range: Optional[str] = None) -> bool:
        return await self.install_package(package_name, version_range, DependencyType.STANDARD, True)

    async def uninstall_package(self, package_name: str, global_: bool = False) -> bool:
        def build() -> CommandDescriptor:
            return uninstall_command(
                self._controller.full_path_to_root_package_directory,
                package_name,
                self.dependency_type_of(package_name),
                global_,
                self._controller.path_to_npm,
                self._controller.use_fallback_if_npm_not_found,
            )

        result = await self._run(build, refresh=True)
        return result.success

    async def uninstall_global_package(self, package_name: str) -> bool:
        return await self.uninstall_package(package_name, True)

    async def search(self, search_text: str) -> List[Package]:
        def build() -> CommandDescriptor:
            return search_command(
                self._controller.full_path_to_root_package_directory,
                search_text,
                self._controller.path_to_npm,
                self._controller.use_fallback_if_npm_not_found,
            )

        result = await self._run(build, refresh=False)
        return result.packages

    async def update_packages(self, packages: Iterable = ()) -> bool:
        """Update the given packages, or everything when none are given."""
        def build() -> CommandDescriptor:
            return update_command(
                self._controller.full_path_to_root_package_directory,
                list(packages),
                self._controller.path_to_npm,
                self._controller.use_fallback_if_npm_not_found,
            )

        result = await self._run(build, refresh=True)
        return result.success

    def dependency_type_of(self, package_name: str) -> DependencyType:
        """Classify package_name from the controller's root package."""
        root = self._controller.root_package
        if root is None:
            return DependencyType.STANDARD
        match = root.modules[package_name]
        if match is None:
            return DependencyType.STANDARD
        if match.is_dev_dependency:
            return DependencyType.DEVELOPMENT
        if match.is_optional_dependency:
            return DependencyType.OPTIONAL
        return DependencyType.STANDARD

    # ---------- internals ----------

    async def _run(self, build: Callable[[], CommandDescriptor], refresh: bool) -> CommandResult:
        kind = None
        try:
            descriptor = build()
            kind = descriptor.kind
            command = self._command_factory(descriptor)
            self._command = command

            success = await command.execute()
            try:
                self._fire_log_events(command, kind)
            finally:
                # npm has already run; the project may have changed
                if refresh:
                    self._controller.refresh()

            packages: List[Package] = []
            if kind == CommandKind.SEARCH and success:
                packages = list(command.results)
            result = CommandResult(
                success=bool(success),
                kind=kind,
                packages=packages,
                cancelled=bool(getattr(command, "cancelled", False)),
            )
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._on_exception_logged(e)
            result = CommandResult(success=False, kind=kind, error=e)

        if is_debug_enabled(logger):
            logger.debug(
                "Commander operation finished",
                extra=extra_context(
                    event="function_exit",
                    component="commander",
                    action=kind.value if kind else None,
                    outcome="success" if result.success else "failure",
                ),
            )
        self._last_result = result
        return result

    def _fire_log_events(self, command: NpmCommand, kind: CommandKind) -> None:
        # search lists the whole matching catalogue; keep it out of the log
        if kind == CommandKind.SEARCH:
            return
        self.events.publish_output(command.standard_output)
        self.events.publish_error(command.standard_error)

    def _on_exception_logged(self, exception: Exception) -> None:
        try:
            self.events.publish_exception(exception)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Exception handler failed while reporting: %s", exception)
