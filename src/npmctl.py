"""npmctl - run one npm operation through NpmCommander.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import os
import signal
import sys

from args import parse_args
from common.logging_utils import add_file_handler, configure_logging, extra_context, is_debug_enabled
from config import load_config
from constants import Constants, DependencyType, ExitCodes
from controller import NpmController
from errors import NpmNotFoundError

logger = logging.getLogger(__name__)


def _print_output(_sender, event):
    sys.stdout.write(event.text if event.text.endswith("\n") else event.text + "\n")


def _print_error(_sender, event):
    sys.stderr.write(event.text if event.text.endswith("\n") else event.text + "\n")


def _dependency_type(args):
    if getattr(args, "DEV", False):
        return DependencyType.DEVELOPMENT
    if getattr(args, "OPTIONAL", False):
        return DependencyType.OPTIONAL
    return DependencyType.STANDARD


def build_controller(args, config):
    """Create the controller from CLI args layered over the config file."""
    npm_path = args.NPM_PATH or config.npm_path
    use_fallback = config.use_fallback and not args.NO_FALLBACK
    timeout = args.TIMEOUT if args.TIMEOUT is not None else config.timeout
    controller = NpmController(
        args.ROOT_DIR,
        path_to_npm=npm_path,
        use_fallback_if_npm_not_found=use_fallback,
        command_timeout=timeout,
    )
    controller.events.subscribe_output(_print_output)
    controller.events.subscribe_error(_print_error)
    return controller


async def run_action(args, commander):
    """Dispatch the parsed sub-command.

    Returns:
        bool: Whether the npm command succeeded.
    """
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, commander.cancel_current_command)
    except (NotImplementedError, RuntimeError):
        # Windows event loops; KeyboardInterrupt is handled in main()
        pass

    try:
        if args.action == "install":
            if args.GLOBAL:
                return await commander.install_global_package(args.PACKAGE, args.VERSION_RANGE)
            return await commander.install_package(args.PACKAGE, args.VERSION_RANGE, _dependency_type(args))
        if args.action == "uninstall":
            if args.GLOBAL:
                return await commander.uninstall_global_package(args.PACKAGE)
            return await commander.uninstall_package(args.PACKAGE)
        if args.action == "search":
            results = await commander.search(args.SEARCH_TEXT)
            for pkg in results:
                line = str(pkg)
                if pkg.description:
                    line += f"  {pkg.description}"
                print(line)
            logger.info("%d package(s) found", len(results))
            return commander.last_result is not None and commander.last_result.success
        if args.action == "update":
            return await commander.update_packages(args.PACKAGES)
        raise ValueError(f"Unknown action: {args.action}")
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass


def _exit_code(commander):
    result = commander.last_result
    if result is None or result.success:
        return ExitCodes.SUCCESS
    if result.cancelled:
        return ExitCodes.INTERRUPTED
    if isinstance(result.error, NpmNotFoundError):
        return ExitCodes.NPM_NOT_FOUND
    return ExitCodes.COMMAND_FAILED


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    config = load_config(args.CONFIG)

    level = args.LOG_LEVEL or config.log_level
    os.environ[Constants.ENV_LOG_LEVEL] = str(level).upper()
    configure_logging()
    if args.LOG_FILE:
        add_file_handler(args.LOG_FILE)
        logger.info("Logging to file: %s", args.LOG_FILE)

    if not os.path.isdir(args.ROOT_DIR):
        logger.error("Project directory not found: %s", args.ROOT_DIR)
        sys.exit(ExitCodes.FILE_ERROR.value)

    controller = build_controller(args, config)
    controller.refresh()

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.action),
        )

    with controller.create_commander() as commander:
        try:
            asyncio.run(run_action(args, commander))
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            commander.cancel_current_command()
            sys.exit(ExitCodes.INTERRUPTED.value)
        code = _exit_code(commander)

    if code != ExitCodes.SUCCESS:
        logger.error("npm %s failed", args.action)
    sys.exit(code.value)


if __name__ == "__main__":
    main()
