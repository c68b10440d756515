"""npm command descriptors and the subprocess runner that executes them."""

from .descriptor import (
    CommandDescriptor,
    install_command,
    uninstall_command,
    search_command,
    update_command,
    validate_version_range,
)
from .npm_path import resolve_npm_path
from .runner import NpmCommand, NpmSearchCommand, create_command
from .search_parser import parse_search_output

__all__ = [
    "CommandDescriptor",
    "install_command",
    "uninstall_command",
    "search_command",
    "update_command",
    "validate_version_range",
    "resolve_npm_path",
    "NpmCommand",
    "NpmSearchCommand",
    "create_command",
    "parse_search_output",
]
