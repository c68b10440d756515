"""Argument parsing functionality for npmctl."""

import argparse

from constants import Constants


def build_parser():
    """Build the npmctl argument parser."""
    parser = argparse.ArgumentParser(
        prog="npmctl",
        description="npmctl - run npm install/uninstall/search/update one command at a time",
        add_help=True,
    )

    parser.add_argument("-d", "--dir",
                        dest="ROOT_DIR",
                        help="Project directory containing package.json (default: current directory)",
                        action="store", type=str,
                        default=".")
    parser.add_argument("--npm",
                        dest="NPM_PATH",
                        help="Path to the npm executable",
                        action="store", type=str)
    parser.add_argument("--no-fallback",
                        dest="NO_FALLBACK",
                        help="Do not search well-known Node.js install locations when npm is not on PATH",
                        action="store_true")
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help=f"Seconds before npm is killed (default: {Constants.COMMAND_TIMEOUT_SEC})",
                        action="store", type=float)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store", type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)

    subparsers = parser.add_subparsers(dest="action", required=True)

    install = subparsers.add_parser("install", help="Install a package")
    install.add_argument("PACKAGE", help="Package name")
    install.add_argument("-r", "--range",
                         dest="VERSION_RANGE",
                         help="Version range or dist-tag, e.g. ^4.0.0 or latest",
                         action="store", type=str)
    dep_group = install.add_mutually_exclusive_group()
    dep_group.add_argument("-D", "--dev",
                           dest="DEV",
                           help="Record as a devDependency",
                           action="store_true")
    dep_group.add_argument("-O", "--optional",
                           dest="OPTIONAL",
                           help="Record as an optionalDependency",
                           action="store_true")
    dep_group.add_argument("-g", "--global",
                           dest="GLOBAL",
                           help="Install globally",
                           action="store_true")

    uninstall = subparsers.add_parser("uninstall", help="Uninstall a package")
    uninstall.add_argument("PACKAGE", help="Package name")
    uninstall.add_argument("-g", "--global",
                           dest="GLOBAL",
                           help="Uninstall a global package",
                           action="store_true")

    search = subparsers.add_parser("search", help="Search the registry")
    search.add_argument("SEARCH_TEXT", help="Search terms")

    update = subparsers.add_parser("update", help="Update packages (all when none are named)")
    update.add_argument("PACKAGES", nargs="*", default=[], help="Packages to update")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
