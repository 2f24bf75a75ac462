"""Workspace package model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class Package:
    """A single package discovered in the workspace.

    Attributes:
        name: Canonical package name (PEP 503).
        version: Version string from pyproject.toml.
        path: Absolute path to the package directory.
        dependencies: Raw PEP 508 dependency strings from pyproject.toml.
        private: Whether the package must never be uploaded.
    """

    name: str
    version: str
    path: Path
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    private: bool = False

    @property
    def pyproject_path(self) -> Path:
        return self.path / "pyproject.toml"

    @property
    def identifier(self) -> str:
        """``name@version`` key used by workspace info."""
        return f"{self.name}@{self.version}"
