"""Immutable descriptions of a single npm invocation.

A descriptor is built fresh for every commander operation and is never
reused. It knows how to render itself as the npm argument list; resolving
and running the executable is the runner's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import semantic_version

from constants import CommandKind, Constants, DependencyType
from errors import InvalidVersionRangeError

_DIST_TAG_RE = re.compile(Constants.DIST_TAG_PATTERN)

_SAVE_FLAGS = {
    DependencyType.STANDARD: "--save",
    DependencyType.DEVELOPMENT: "--save-dev",
    DependencyType.OPTIONAL: "--save-optional",
}


def validate_version_range(package_name: str, version_range: Optional[str]) -> Optional[str]:
    """Return the stripped range, or None when no range was given.

    Dist-tags such as ``latest`` or ``next`` and protocol or alias
    specifiers (``npm:lodash@^4``, ``github:user/repo``, ``file:../lib``,
    tarball URLs) are passed through; anything else must parse as an npm
    semver range.

    Raises:
        InvalidVersionRangeError: If npm would reject the range.
    """
    if version_range is None:
        return None
    version_range = version_range.strip()
    if not version_range:
        return None
    if _DIST_TAG_RE.match(version_range):
        return version_range
    if ":" in version_range or "/" in version_range:
        # npm resolves these itself
        return version_range
    try:
        semantic_version.NpmSpec(version_range)
    except ValueError as e:
        raise InvalidVersionRangeError(package_name, version_range) from e
    return version_range


@dataclass(frozen=True)
class CommandDescriptor:
    """Everything needed to run one npm operation."""
    kind: CommandKind
    working_directory: str
    path_to_npm: Optional[str] = None
    use_fallback_if_npm_not_found: bool = True
    package_name: Optional[str] = None
    version_range: Optional[str] = None
    dependency_type: DependencyType = DependencyType.STANDARD
    global_install: bool = False
    search_text: Optional[str] = None
    packages: Tuple[str, ...] = field(default_factory=tuple)

    def arguments(self) -> List[str]:
        """Render the npm argument list (without the executable)."""
        if self.kind == CommandKind.INSTALL:
            target = self.package_name
            if self.version_range:
                target = f"{self.package_name}@{self.version_range}"
            return ["install", target, self._scope_flag()]
        if self.kind == CommandKind.UNINSTALL:
            return ["uninstall", self.package_name, self._scope_flag()]
        if self.kind == CommandKind.SEARCH:
            args = ["search", "--json"]
            if self.search_text:
                args.append(self.search_text)
            return args
        if self.kind == CommandKind.UPDATE:
            return ["update", *self.packages, "-g" if self.global_install else "--save"]
        raise ValueError(f"Unsupported command kind: {self.kind}")

    def _scope_flag(self) -> str:
        if self.global_install:
            return "-g"
        return _SAVE_FLAGS[self.dependency_type]

    def describe(self) -> str:
        return "npm " + " ".join(self.arguments())


def _require_name(package_name: Optional[str]) -> str:
    if not package_name or not package_name.strip():
        raise ValueError("A package name is required")
    return package_name.strip()


def install_command(
    working_directory: str,
    package_name: str,
    version_range: Optional[str],
    dependency_type: DependencyType,
    global_install: bool,
    path_to_npm: Optional[str] = None,
    use_fallback_if_npm_not_found: bool = True,
) -> CommandDescriptor:
    name = _require_name(package_name)
    return CommandDescriptor(
        kind=CommandKind.INSTALL,
        working_directory=working_directory,
        path_to_npm=path_to_npm,
        use_fallback_if_npm_not_found=use_fallback_if_npm_not_found,
        package_name=name,
        version_range=validate_version_range(name, version_range),
        dependency_type=dependency_type,
        global_install=global_install,
    )


def uninstall_command(
    working_directory: str,
    package_name: str,
    dependency_type: DependencyType,
    global_install: bool,
    path_to_npm: Optional[str] = None,
    use_fallback_if_npm_not_found: bool = True,
) -> CommandDescriptor:
    return CommandDescriptor(
        kind=CommandKind.UNINSTALL,
        working_directory=working_directory,
        path_to_npm=path_to_npm,
        use_fallback_if_npm_not_found=use_fallback_if_npm_not_found,
        package_name=_require_name(package_name),
        dependency_type=dependency_type,
        global_install=global_install,
    )


def search_command(
    working_directory: str,
    search_text: Optional[str],
    path_to_npm: Optional[str] = None,
    use_fallback_if_npm_not_found: bool = True,
) -> CommandDescriptor:
    return CommandDescriptor(
        kind=CommandKind.SEARCH,
        working_directory=working_directory,
        path_to_npm=path_to_npm,
        use_fallback_if_npm_not_found=use_fallback_if_npm_not_found,
        search_text=(search_text or "").strip() or None,
    )


def update_command(
    working_directory: str,
    packages: Iterable = (),
    path_to_npm: Optional[str] = None,
    use_fallback_if_npm_not_found: bool = True,
    global_install: bool = False,
) -> CommandDescriptor:
    """Build an update descriptor; an empty package set updates everything.

    packages may hold Package objects or plain names.
    """
    names = tuple(getattr(pkg, "name", pkg) for pkg in packages)
    return CommandDescriptor(
        kind=CommandKind.UPDATE,
        working_directory=working_directory,
        path_to_npm=path_to_npm,
        use_fallback_if_npm_not_found=use_fallback_if_npm_not_found,
        global_install=global_install,
        packages=names,
    )
