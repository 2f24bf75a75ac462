"""Collaborators shared by every task of a run."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from pyparcel.config.schema import PyParcelConfig, RetryConfig
from pyparcel.git.directory import GitDirectory
from pyparcel.git.repo import GitRepository
from pyparcel.publish.backup import BackupStore, FileBackupStore, default_backup_path
from pyparcel.publish.types import ActionType
from pyparcel.registry.base import Registry
from pyparcel.registry.pypi import PyPIRegistry
from pyparcel.versioning.changelog import Changelog
from pyparcel.workspace.workspace import Workspace


@dataclass
class PublishContext:
    """External collaborators of the pipeline.

    Attributes:
        workspace: Package discovery.
        repo: Repository-wide git operations.
        registry: Where views come from and packages go to.
        backup_store: Checkpoint storage. Defaults to a file per action.
        make_git_dir: Builds the history handle of a package directory.
        make_changelog: Builds the changelog handle of a package directory.
        today: Date written into changelog headings.
    """

    workspace: Workspace
    repo: GitRepository
    registry: Registry
    backup_store: BackupStore | None = None
    make_git_dir: Callable[[Path], GitDirectory] | None = None
    make_changelog: Callable[[Path], Changelog] | None = None
    today: date | None = None
    _stores: dict[ActionType, BackupStore] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.make_git_dir is None:
            root = self.workspace.root
            self.make_git_dir = lambda path: GitDirectory(root, path)
        if self.make_changelog is None:
            filename = self.config.versioning.changelog_filename
            self.make_changelog = lambda path: Changelog(path / filename)

    @classmethod
    def from_workspace(cls, workspace: Workspace, *, registry: Registry | None = None) -> PublishContext:
        """Production collaborators for a discovered workspace."""
        return cls(
            workspace=workspace,
            repo=GitRepository(workspace.root),
            registry=registry or PyPIRegistry(workspace.root, workspace.config.publish),
        )

    @property
    def root(self) -> Path:
        return self.workspace.root

    @property
    def config(self) -> PyParcelConfig:
        return self.workspace.config

    @property
    def retry_policy(self) -> RetryConfig:
        return self.config.retry

    @property
    def concurrency(self) -> int:
        return self.config.command_defaults.concurrency

    def backup_store_for(self, action: ActionType) -> BackupStore:
        """Checkpoint storage of ``action``; runs of different actions never share one."""
        if self.backup_store is not None:
            return self.backup_store
        if action not in self._stores:
            path = default_backup_path(self.root, action.value, self.config.backup.directory)
            self._stores[action] = FileBackupStore(path)
        return self._stores[action]
