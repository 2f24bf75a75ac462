"""Reading and rewriting package pyproject.toml files.

Reads go through tomllib. Writes use tomlkit to preserve formatting and comments,
keeping release commits diff-friendly.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, cast

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from pyparcel.errors import ConfigurationError
from pyparcel.workspace.package import Package

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def read_package(path: Path) -> Package:
    """Load package metadata from ``path/pyproject.toml``.

    Raises:
        ConfigurationError: If the file is missing, invalid, or has no name.
    """
    pyproject = path / "pyproject.toml"
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read pyproject.toml: {e}", path=pyproject) from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid pyproject.toml: {e}", path=pyproject) from e

    project = data.get("project", {})
    name = project.get("name")
    if not name:
        raise ConfigurationError("Missing [project].name", path=pyproject)

    deps: list[str] = list(project.get("dependencies", []))
    for group in project.get("optional-dependencies", {}).values():
        deps.extend(group)

    return Package(
        name=canonicalize_name(name),
        version=str(project.get("version", "0.0.0")),
        path=path.resolve(),
        dependencies=tuple(deps),
        private=PRIVATE_CLASSIFIER in project.get("classifiers", []),
    )


def dependency_name(requirement: str) -> str | None:
    """Canonical name of a PEP 508 requirement string, or None if unparsable."""
    try:
        return canonicalize_name(Requirement(requirement).name)
    except InvalidRequirement:
        return None


def set_version(package: Package, version: str) -> None:
    """Write ``[project].version``."""
    doc = tomlkit.parse(package.pyproject_path.read_text(encoding="utf-8"))
    project = cast(dict[str, Any], doc["project"])
    project["version"] = version
    package.pyproject_path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _widen(requirement: str, version: str) -> str:
    req = Requirement(requirement)
    if not req.specifier or req.specifier.contains(version, prereleases=True):
        return requirement
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}>={version}{marker}"


def set_dependency_versions(package: Package, versions: dict[str, str]) -> bool:
    """Make the package's requirements on workspace members accept new versions.

    Requirements whose specifier already contains the new version are left alone,
    the rest become ``>=<version>``. Extras and markers are kept.

    Args:
        package: The dependent package.
        versions: Canonical dependency name -> new version.

    Returns:
        True if the file was rewritten.
    """
    doc = tomlkit.parse(package.pyproject_path.read_text(encoding="utf-8"))
    project = cast(dict[str, Any], doc["project"])

    groups: list[list[Any]] = []
    if isinstance(project.get("dependencies"), list):
        groups.append(project["dependencies"])
    for group in cast(dict[str, Any], project.get("optional-dependencies", {})).values():
        if isinstance(group, list):
            groups.append(group)

    changed = False
    for deps in groups:
        for i, dep in enumerate(deps):
            name = dependency_name(str(dep))
            if name not in versions:
                continue
            widened = _widen(str(dep), versions[name])
            if widened != str(dep):
                deps[i] = widened
                changed = True

    if changed:
        package.pyproject_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return changed
