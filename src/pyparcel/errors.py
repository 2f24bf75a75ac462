"""Exception hierarchy for pyparcel."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class PyParcelError(Exception):
    """Base class for all pyparcel errors.

    Attributes:
        message: Human readable description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(PyParcelError):
    """Invalid or unreadable pyparcel.yaml."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)


class WorkspaceNotFoundError(PyParcelError):
    """No pyparcel.yaml found in the directory or any parent."""

    def __init__(self, search_path: Path) -> None:
        self.search_path = search_path
        super().__init__(f"No pyparcel.yaml found in {search_path} or any parent directory")


class GraphBuildError(PyParcelError):
    """A declared workspace dependency does not resolve to a known package."""

    def __init__(self, package: str, dependency: str) -> None:
        self.package = package
        self.dependency = dependency
        super().__init__(
            f"Package '{package}' depends on '{dependency}' which is not part of the workspace"
        )


class CyclicDependencyError(PyParcelError):
    """The dependency graph contains a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"Cyclic dependency detected: {' -> '.join(self.cycle)}")


class ExclusiveOptionError(PyParcelError):
    """More than one action-selecting option was given."""

    def __init__(self, options: Sequence[str]) -> None:
        self.options = list(options)
        super().__init__(
            f"Options {', '.join(self.options)} are mutually exclusive, use only one of them"
        )


class BackupMismatchError(PyParcelError):
    """A retry was requested but the saved backup no longer matches the repository."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(
            f"Cannot resume from backup: {reason}. Run the command again without --retry."
        )


class UncleanRepositoryError(PyParcelError):
    """The working tree has uncommitted changes."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(
            f"Repository at {root} has uncommitted changes. "
            "Commit or stash them, or pass --skip-repo-checks."
        )


class StateOverwriteError(PyParcelError):
    """A task tried to rewrite a state field set earlier in the same run."""

    def __init__(self, field: str, current: object, new: object) -> None:
        self.field = field
        super().__init__(f"State field '{field}' is already set to {current!r}, refusing {new!r}")


class IntegrityError(PyParcelError):
    """A package failed its consistency checks."""

    def __init__(self, package: str, reason: str) -> None:
        self.package = package
        self.reason = reason
        super().__init__(f"{package}: {reason}")


class TransientError(PyParcelError):
    """A failure at a collaborator boundary that may succeed when retried."""


class GitError(TransientError):
    """A git command failed."""

    def __init__(self, message: str, command: str | None = None) -> None:
        self.command = command
        if command:
            message = f"{message} (command: {command})"
        super().__init__(message)


class RegistryError(TransientError):
    """A registry query or write failed."""

    def __init__(self, message: str, package: str | None = None, *, transient: bool = True) -> None:
        self.package = package
        self.transient = transient
        if package:
            message = f"{package}: {message}"
        super().__init__(message)


class PublishError(PyParcelError):
    """Building or uploading a distribution failed."""

    def __init__(self, message: str, package: str | None = None) -> None:
        self.package = package
        super().__init__(message)
