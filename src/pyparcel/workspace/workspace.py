"""Workspace discovery and dependency info."""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path

from packaging.requirements import Requirement

from pyparcel.config import PyParcelConfig, find_config_file, load_config
from pyparcel.errors import ConfigurationError
from pyparcel.workspace.package import Package
from pyparcel.workspace.pyproject import dependency_name, read_package

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WorkspaceProjectInfo:
    """Dependency info for one workspace project.

    Attributes:
        location: Absolute package directory.
        workspace_dependencies: Names of workspace members this project requires.
        mismatched_workspace_dependencies: Members whose declared specifier does not
            accept the version currently in the workspace.
    """

    location: Path
    workspace_dependencies: tuple[str, ...] = field(default_factory=tuple)
    mismatched_workspace_dependencies: tuple[str, ...] = field(default_factory=tuple)


WorkspacesInfo = dict[str, WorkspaceProjectInfo]


class Workspace:
    """A pyparcel workspace: a root directory, its config and its packages.

    Attributes:
        root: Directory holding pyparcel.yaml.
        config: Parsed configuration.
    """

    def __init__(self, root: Path, config: PyParcelConfig) -> None:
        self.root = root.resolve()
        self.config = config
        self._packages: dict[str, Package] | None = None

    @classmethod
    def discover(cls, path: Path | None = None) -> Workspace:
        """Find pyparcel.yaml from ``path`` upwards and load the workspace."""
        config_path = find_config_file(path)
        return cls(config_path.parent, load_config(config_path))

    @property
    def packages(self) -> dict[str, Package]:
        """Packages by canonical name, loaded lazily."""
        if self._packages is None:
            self._packages = self._load_packages()
        return self._packages

    def reload(self) -> None:
        """Forget cached package metadata after manifests were rewritten."""
        self._packages = None

    def get_package(self, name: str) -> Package:
        try:
            return self.packages[name]
        except KeyError as e:
            raise ConfigurationError(f"Unknown package '{name}'") from e

    def _is_ignored(self, package: Package) -> bool:
        rel = package.path.relative_to(self.root).as_posix()
        return any(
            fnmatch.fnmatch(package.name, pattern) or fnmatch.fnmatch(rel, pattern)
            for pattern in self.config.ignore
        )

    def _load_packages(self) -> dict[str, Package]:
        packages: dict[str, Package] = {}
        for pattern in self.config.packages:
            for candidate in sorted(self.root.glob(pattern)):
                if not (candidate / "pyproject.toml").is_file():
                    continue
                package = read_package(candidate)
                if self._is_ignored(package):
                    logger.debug("Ignoring %s", package.name)
                    continue
                if package.name in packages:
                    raise ConfigurationError(
                        f"Package '{package.name}' is defined twice",
                        path=candidate,
                    )
                packages[package.name] = package
        return packages

    def get_info(self) -> WorkspacesInfo:
        """Build the ``name@version`` -> project info mapping."""
        packages = self.packages
        info: WorkspacesInfo = {}
        for package in packages.values():
            deps: list[str] = []
            mismatched: list[str] = []
            for requirement in package.dependencies:
                name = dependency_name(requirement)
                if name is None or name not in packages or name in deps:
                    continue
                deps.append(name)
                specifier = Requirement(requirement).specifier
                version = packages[name].version
                if specifier and not specifier.contains(version, prereleases=True):
                    mismatched.append(name)
            info[package.identifier] = WorkspaceProjectInfo(
                location=package.path,
                workspace_dependencies=tuple(deps),
                mismatched_workspace_dependencies=tuple(mismatched),
            )
        return info

    async def get_info_async(self) -> WorkspacesInfo:
        """Async variant of :meth:`get_info`, reading manifests off the event loop."""
        return await asyncio.to_thread(self.get_info)
