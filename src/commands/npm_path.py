"""Locate the npm executable."""

from __future__ import annotations

import logging
import os
import shutil
from typing import List, Optional

from constants import Constants
from errors import NpmNotFoundError

logger = logging.getLogger(__name__)


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def resolve_npm_path(path_to_npm: Optional[str] = None, use_fallback: bool = True) -> str:
    """Resolve the npm executable to run.

    Order: explicit path, NPMCTL_NPM_PATH, PATH lookup, and (only when
    use_fallback is set) the well-known Node.js install directories.

    Args:
        path_to_npm: Path configured by the owning model, may be None.
        use_fallback: Whether to search the well-known install directories.

    Returns:
        Absolute path of the npm executable.

    Raises:
        NpmNotFoundError: If nothing usable was found.
    """
    searched: List[str] = []

    for candidate in (path_to_npm, os.environ.get(Constants.ENV_NPM_PATH)):
        if not candidate:
            continue
        candidate = os.path.expanduser(candidate)
        if os.path.isdir(candidate):
            candidate = os.path.join(candidate, Constants.NPM_EXECUTABLE)
        searched.append(candidate)
        if _is_executable(candidate):
            return os.path.abspath(candidate)
        logger.warning("Configured npm path is not executable: %s", candidate)

    on_path = shutil.which(Constants.NPM_EXECUTABLE)
    searched.append(f"PATH:{Constants.NPM_EXECUTABLE}")
    if on_path:
        return on_path

    if use_fallback:
        for directory in Constants.FALLBACK_NPM_DIRS:
            candidate = os.path.join(directory, Constants.NPM_EXECUTABLE)
            searched.append(candidate)
            if _is_executable(candidate):
                logger.info("npm not on PATH, using fallback %s", candidate)
                return candidate

    raise NpmNotFoundError(searched)
