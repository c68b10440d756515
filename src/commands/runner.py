"""Run a CommandDescriptor as an npm subprocess.

Output is captured in full and exposed once the process exits; nothing is
streamed while npm runs.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from constants import CommandKind, Constants
from errors import CommandTimeoutError
from models import Package

from .descriptor import CommandDescriptor
from .npm_path import resolve_npm_path
from .search_parser import parse_search_output

logger = logging.getLogger(__name__)


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class NpmCommand:
    """One npm process run for one descriptor."""

    def __init__(
        self,
        descriptor: CommandDescriptor,
        timeout: Optional[float] = Constants.COMMAND_TIMEOUT_SEC,
        cancel_grace: float = Constants.CANCEL_GRACE_SEC,
    ):
        self.descriptor = descriptor
        self.timeout = timeout
        self.cancel_grace = cancel_grace
        self._process: Optional[asyncio.subprocess.Process] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._kill_handle: Optional[asyncio.TimerHandle] = None
        self._stdout = ""
        self._stderr = ""
        self._return_code: Optional[int] = None
        self._cancel_requested = False

    @property
    def standard_output(self) -> str:
        return self._stdout

    @property
    def standard_error(self) -> str:
        return self._stderr

    @property
    def return_code(self) -> Optional[int]:
        return self._return_code

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    def cancel_current_task(self) -> None:
        """Ask the running npm process to stop.

        Cancellation is cooperative: execute() still completes normally and
        reports failure. npm gets SIGTERM first and is killed if it is still
        running after cancel_grace seconds. Calling this before start or
        after exit only marks the command as cancelled. Must be called from
        the thread running the event loop.
        """
        self._cancel_requested = True
        if self.running:
            logger.info("Cancelling %s", self.descriptor.describe())
            self._terminate()

    def _terminate(self) -> None:
        try:
            self._process.terminate()
        except ProcessLookupError:
            return
        if self._kill_handle is None and self._loop is not None and not self._loop.is_closed():
            self._kill_handle = self._loop.call_later(self.cancel_grace, self._kill_if_running)

    def _kill_if_running(self) -> None:
        self._kill_handle = None
        if self.running:
            logger.warning("npm ignored SIGTERM for %ss, killing it", self.cancel_grace)
            self._kill()

    def _kill(self) -> None:
        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    async def _kill_and_reap(self) -> None:
        self._kill()
        await self._process.wait()
        self._return_code = self._process.returncode

    async def execute(self) -> bool:
        """Run npm to completion.

        Returns:
            True when npm exited with status 0 and was not cancelled.

        Raises:
            NpmNotFoundError: If the executable cannot be resolved.
            CommandTimeoutError: If npm outlived the timeout.
            OSError: If the process could not be spawned.
            asyncio.CancelledError: If the awaiting task was cancelled; npm
                is killed and reaped first.
        """
        descriptor = self.descriptor
        npm = resolve_npm_path(descriptor.path_to_npm, descriptor.use_fallback_if_npm_not_found)
        arguments = descriptor.arguments()
        logger.info("Running: npm %s", " ".join(arguments))
        start = time.monotonic()

        self._loop = asyncio.get_running_loop()
        self._process = await asyncio.create_subprocess_exec(
            npm,
            *arguments,
            cwd=descriptor.working_directory,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        if self._cancel_requested:
            self._terminate()

        try:
            stdout, stderr = await asyncio.wait_for(self._process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._kill_and_reap()
            raise CommandTimeoutError(arguments, self.timeout) from None
        except asyncio.CancelledError:
            logger.info("Caller cancelled %s, killing npm", descriptor.describe())
            await self._kill_and_reap()
            raise
        finally:
            if self._kill_handle is not None:
                self._kill_handle.cancel()
                self._kill_handle = None

        self._stdout = _decode(stdout)
        self._stderr = _decode(stderr)
        self._return_code = self._process.returncode
        success = self._return_code == 0 and not self._cancel_requested

        if is_debug_enabled(logger):
            logger.debug(
                "npm finished",
                extra=extra_context(
                    event="function_exit",
                    component="runner",
                    action=descriptor.kind.value,
                    outcome="success" if success else "failure",
                    return_code=self._return_code,
                    duration_ms=int((time.monotonic() - start) * 1000),
                ),
            )
        if not success and not self._cancel_requested:
            logger.warning("npm %s exited with status %s", descriptor.kind.value, self._return_code)
        return success


class NpmSearchCommand(NpmCommand):
    """npm search; results are parsed from stdout after a successful run."""

    def __init__(
        self,
        descriptor: CommandDescriptor,
        timeout: Optional[float] = Constants.COMMAND_TIMEOUT_SEC,
        cancel_grace: float = Constants.CANCEL_GRACE_SEC,
    ):
        super().__init__(descriptor, timeout, cancel_grace)
        self._results: List[Package] = []

    @property
    def results(self) -> List[Package]:
        return list(self._results)

    async def execute(self) -> bool:
        success = await super().execute()
        if success:
            self._results = parse_search_output(self.standard_output)
        return success


def create_command(descriptor: CommandDescriptor, timeout: Optional[float] = Constants.COMMAND_TIMEOUT_SEC) -> NpmCommand:
    """Pick the command class matching the descriptor kind."""
    if descriptor.kind == CommandKind.SEARCH:
        return NpmSearchCommand(descriptor, timeout)
    return NpmCommand(descriptor, timeout)
