"""Owning model for an npm project directory.

The controller holds the project settings the commander needs, keeps the
parsed root package current, and is the sink for everything the commander
logs. Listeners (the CLI, a UI panel) subscribe to ``controller.events`` and
``on_refreshed`` rather than to individual commanders.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional

from commander import NpmCommander
from commands.runner import create_command
from events import LogEventChannel, NpmExceptionEvent, NpmLogEvent
from models import RootPackage

logger = logging.getLogger(__name__)


class NpmController:
    """Project model driven by NpmCommander operations."""

    def __init__(
        self,
        root_directory: str,
        path_to_npm: Optional[str] = None,
        use_fallback_if_npm_not_found: bool = True,
        command_timeout: Optional[float] = None,
    ):
        self.full_path_to_root_package_directory = os.path.abspath(root_directory)
        self.path_to_npm = path_to_npm
        self.use_fallback_if_npm_not_found = use_fallback_if_npm_not_found
        self.command_timeout = command_timeout
        self.root_package: Optional[RootPackage] = None
        self.events = LogEventChannel(sender=self)
        self._refreshed_listeners: List[Callable[["NpmController"], None]] = []

    def on_refreshed(self, listener: Callable[["NpmController"], None]) -> None:
        self._refreshed_listeners.append(listener)

    def refresh(self) -> None:
        """Reload the root package from disk and notify listeners."""
        try:
            self.root_package = RootPackage.from_directory(self.full_path_to_root_package_directory)
        except (OSError, ValueError) as e:
            self.root_package = None
            self.log_exception(self, NpmExceptionEvent(e))
        else:
            if self.root_package is None:
                logger.debug("No package.json in %s", self.full_path_to_root_package_directory)
            else:
                logger.debug(
                    "Loaded %s with %d modules",
                    self.root_package.name or "<unnamed>",
                    len(self.root_package.modules),
                )
        for listener in list(self._refreshed_listeners):
            listener(self)

    # ---------- commander sinks ----------

    def log_output(self, sender, event: NpmLogEvent) -> None:
        logger.debug("npm output from %r: %d chars", sender, len(event.text))
        self.events.publish_output(event.text)

    def log_error(self, sender, event: NpmLogEvent) -> None:
        logger.debug("npm error output from %r: %d chars", sender, len(event.text))
        self.events.publish_error(event.text)

    def log_exception(self, sender, event: NpmExceptionEvent) -> None:
        logger.error("npm command failed: %s", event.exception)
        self.events.publish_exception(event.exception)

    def create_commander(self, command_factory=None):
        """Return a new NpmCommander bound to this controller."""
        if command_factory is None and self.command_timeout is not None:
            timeout = self.command_timeout

            def command_factory(descriptor):
                return create_command(descriptor, timeout)

        return NpmCommander(self, command_factory=command_factory)
