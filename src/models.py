"""Data models for the managed project and npm search results."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from constants import Constants, DependencyType

logger = logging.getLogger(__name__)


@dataclass
class Package:
    """A package as reported by npm search, or named as an update target."""
    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    date: Optional[str] = None
    links: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        if self.version:
            return f"{self.name}@{self.version}"
        return self.name


@dataclass
class PackageModule:
    """One dependency declared by the root package."""
    name: str
    requested_range: Optional[str] = None
    installed_version: Optional[str] = None
    is_dev_dependency: bool = False
    is_optional_dependency: bool = False

    @property
    def is_missing(self) -> bool:
        """Declared in package.json but absent from node_modules."""
        return self.installed_version is None

    @property
    def dependency_type(self) -> DependencyType:
        if self.is_dev_dependency:
            return DependencyType.DEVELOPMENT
        if self.is_optional_dependency:
            return DependencyType.OPTIONAL
        return DependencyType.STANDARD


class ModuleCollection:
    """Name to PackageModule lookup; unknown names map to None."""

    def __init__(self, modules=None):
        self._modules: Dict[str, PackageModule] = {}
        for module in modules or []:
            self._modules[module.name] = module

    def __getitem__(self, name: str) -> Optional[PackageModule]:
        return self._modules.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __iter__(self) -> Iterator[PackageModule]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)

    def names(self) -> List[str]:
        return list(self._modules)


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return data


def _installed_version(root_dir: str, name: str) -> Optional[str]:
    """Read the version of an installed module from node_modules, if any."""
    manifest = os.path.join(
        root_dir, Constants.NODE_MODULES_DIR, *name.split("/"), Constants.PACKAGE_JSON_FILE
    )
    if not os.path.isfile(manifest):
        return None
    try:
        return _read_json(manifest).get("version")
    except (OSError, ValueError) as e:
        logger.debug("Unreadable installed manifest %s: %s", manifest, e)
        return None


@dataclass
class RootPackage:
    """Top-level package.json of the project being managed."""
    path: str
    name: Optional[str] = None
    version: Optional[str] = None
    modules: ModuleCollection = field(default_factory=ModuleCollection)

    @classmethod
    def from_directory(cls, root_dir: str) -> Optional["RootPackage"]:
        """Load the root package from root_dir.

        Returns:
            RootPackage, or None when root_dir has no package.json.

        Raises:
            ValueError: If package.json is not valid JSON.
        """
        manifest = os.path.join(root_dir, Constants.PACKAGE_JSON_FILE)
        if not os.path.isfile(manifest):
            return None
        try:
            data = _read_json(manifest)
        except json.JSONDecodeError as e:
            raise ValueError(f"{manifest}: {e}") from e

        sections = [
            (DependencyType.STANDARD, data.get(DependencyType.STANDARD.value) or {}),
            (DependencyType.DEVELOPMENT, data.get(DependencyType.DEVELOPMENT.value) or {}),
            (DependencyType.OPTIONAL, data.get(DependencyType.OPTIONAL.value) or {}),
        ]
        modules: Dict[str, PackageModule] = {}
        for dep_type, deps in sections:
            if not isinstance(deps, dict):
                logger.warning("Ignoring malformed %s section in %s", dep_type.value, manifest)
                continue
            for name, requested in deps.items():
                # npm records optional deps in both sections; optional wins
                module = modules.get(name) or PackageModule(
                    name=name,
                    requested_range=requested,
                    installed_version=_installed_version(root_dir, name),
                )
                if dep_type == DependencyType.DEVELOPMENT:
                    module.is_dev_dependency = True
                elif dep_type == DependencyType.OPTIONAL:
                    module.is_optional_dependency = True
                modules[name] = module

        return cls(
            path=os.path.abspath(root_dir),
            name=data.get("name"),
            version=data.get("version"),
            modules=ModuleCollection(modules.values()),
        )
