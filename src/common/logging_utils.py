"""Centralized logging helpers shared by the CLI and the commander."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict

from constants import Constants

_HANDLER_MARKER = "_npmctl_handler"


def configure_logging() -> None:
    """Install the console handler on the root logger.

    The level comes from the NPMCTL_LOG_LEVEL environment variable and
    defaults to INFO. Calling this more than once only updates the level.
    """
    root = logging.getLogger()
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in root.handlers:
        if getattr(handler, _HANDLER_MARKER, False):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)


def add_file_handler(log_file: str) -> logging.Handler:
    """Mirror log records into log_file."""
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(logging.Formatter(Constants.FILE_LOG_FORMAT))
    logging.getLogger().addHandler(file_handler)
    return file_handler


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when debug records for logger would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` payload for structured debug records.

    Fields set to None are dropped so records only carry what is known.
    """
    return {key: value for key, value in fields.items() if value is not None}
