"""Constants used in the project."""

import os
from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    COMMAND_FAILED = 2
    NPM_NOT_FOUND = 3
    INTERRUPTED = 130


class DependencyType(Enum):
    """Section of package.json a dependency is recorded in.

    Args:
        Enum (string): Dependency classification.
    """

    STANDARD = "dependencies"
    DEVELOPMENT = "devDependencies"
    OPTIONAL = "optionalDependencies"


class CommandKind(Enum):
    """npm operations the commander knows how to run.

    Args:
        Enum (string): npm sub-command name.
    """

    INSTALL = "install"
    UNINSTALL = "uninstall"
    SEARCH = "search"
    UPDATE = "update"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    NPM_EXECUTABLE = "npm.cmd" if os.name == "nt" else "npm"
    PACKAGE_JSON_FILE = "package.json"
    NODE_MODULES_DIR = "node_modules"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    COMMAND_TIMEOUT_SEC = 600  # npm install on a cold cache can be slow
    CANCEL_GRACE_SEC = 5
    CONFIG_SECTION = "npmctl"

    ENV_LOG_LEVEL = "NPMCTL_LOG_LEVEL"
    ENV_NPM_PATH = "NPMCTL_NPM_PATH"

    # Checked in order when the npm executable is not on PATH
    FALLBACK_NPM_DIRS = [
        os.path.join(os.environ.get("ProgramFiles", r"C:\Program Files"), "nodejs"),
        os.path.join(os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)"), "nodejs"),
        "/usr/local/bin",
        "/usr/bin",
        "/opt/homebrew/bin",
        os.path.expanduser("~/.volta/bin"),
    ]

    DIST_TAG_PATTERN = r"^[A-Za-z][A-Za-z0-9._-]*$"
