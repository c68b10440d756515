"""Publish/subscribe channels for npm output, errors and exceptions.

Three independent channels are kept: standard output text, standard error
text and exceptions. Handlers are plain callables taking ``(sender, event)``
and are invoked synchronously, in subscription order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class LogSource(Enum):
    """Stream a log event was captured from."""
    STANDARD_OUTPUT = "stdout"
    STANDARD_ERROR = "stderr"


class LogChannel(Enum):
    """One of the three channels a LogEventChannel carries."""
    OUTPUT = "output"
    ERROR = "error"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class NpmLogEvent:
    """Text captured from one stream of an npm command."""
    text: str
    source: LogSource


@dataclass(frozen=True)
class NpmExceptionEvent:
    """A caught failure, passed through untouched."""
    exception: BaseException


Handler = Callable[[Any, Any], None]


class LogEventChannel:
    """Multi-subscriber output, error and exception channels."""

    def __init__(self, sender: Any = None):
        self._sender = sender if sender is not None else self
        self._output: List[Handler] = []
        self._error: List[Handler] = []
        self._exception: List[Handler] = []

    # ---------- subscription ----------

    def subscribe_output(self, handler: Handler) -> None:
        self._output.append(handler)

    def unsubscribe_output(self, handler: Handler) -> None:
        _remove(self._output, handler)

    def subscribe_error(self, handler: Handler) -> None:
        self._error.append(handler)

    def unsubscribe_error(self, handler: Handler) -> None:
        _remove(self._error, handler)

    def subscribe_exception(self, handler: Handler) -> None:
        self._exception.append(handler)

    def unsubscribe_exception(self, handler: Handler) -> None:
        _remove(self._exception, handler)

    def has_subscribers(self, channel: Optional[LogChannel] = None) -> bool:
        """Whether channel, or any channel when None, has a subscriber."""
        if channel is None:
            return bool(self._output or self._error or self._exception)
        handlers = {
            LogChannel.OUTPUT: self._output,
            LogChannel.ERROR: self._error,
            LogChannel.EXCEPTION: self._exception,
        }[channel]
        return bool(handlers)

    def clear(self) -> None:
        """Drop every subscription on all three channels."""
        self._output.clear()
        self._error.clear()
        self._exception.clear()

    # ---------- publishing ----------

    def publish_output(self, text: Optional[str]) -> None:
        self._publish_text(self._output, text, LogSource.STANDARD_OUTPUT)

    def publish_error(self, text: Optional[str]) -> None:
        self._publish_text(self._error, text, LogSource.STANDARD_ERROR)

    def publish_exception(self, exception: BaseException) -> None:
        if not self._exception:
            return
        event = NpmExceptionEvent(exception)
        # Snapshot so a handler may unsubscribe while being notified
        for handler in list(self._exception):
            handler(self._sender, event)

    def _publish_text(self, handlers: List[Handler], text: Optional[str], source: LogSource) -> None:
        if not handlers or not text:
            return
        event = NpmLogEvent(text, source)
        for handler in list(handlers):
            handler(self._sender, event)


def _remove(handlers: List[Handler], handler: Handler) -> None:
    try:
        handlers.remove(handler)
    except ValueError:
        logger.debug("Handler %r was not subscribed", handler)
