"""Parcels and their per-run state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from pyparcel.errors import StateOverwriteError
from pyparcel.git.directory import GitDirectory
from pyparcel.git.logs import PackageGitLogs
from pyparcel.registry.base import PackageView
from pyparcel.versioning.changelog import Changelog, ChangelogChanges
from pyparcel.versioning.release_type import ReleaseType
from pyparcel.workspace.package import Package


class ActionType(str, Enum):
    """The one top-level operation a run performs."""

    PUBLISH = "publish"
    LIST = "list"
    PROMOTE = "promote"
    BACKPORT = "backport"


class PublishState(BaseModel):
    """Results accumulated for one parcel, task by task.

    A field counts as set once it was written, even when written as ``None``:
    ``min_release_type=None`` means "no release needed" and ``logs=None`` means
    "history could not be resolved". Set fields are never rewritten within a run;
    go through :meth:`assign` to get that check.
    """

    has_unpublished_changes: bool | None = None
    is_selected_to_publish: bool | None = None
    changelog_changes: ChangelogChanges | None = None
    integral: bool | None = None
    logs: PackageGitLogs | None = None
    min_release_type: ReleaseType | None = None
    release_type: ReleaseType | None = None
    release_version: str | None = None
    published: bool | None = None
    task_errors: dict[str, list[str]] = Field(default_factory=dict)

    def is_set(self, *names: str) -> bool:
        return all(name in self.model_fields_set for name in names)

    def assign(self, **values: Any) -> None:
        """Write state fields.

        Raises:
            StateOverwriteError: If a field is already set to a different value.
        """
        for name, value in values.items():
            if name == "task_errors" or name not in type(self).model_fields:
                raise AttributeError(f"PublishState has no assignable field '{name}'")
            if self.is_set(name):
                current = getattr(self, name)
                if current != value:
                    raise StateOverwriteError(name, current, value)
                continue
            setattr(self, name, value)

    @property
    def errors(self) -> list[str]:
        """Failure messages, grouped by the task that recorded them."""
        return [message for messages in self.task_errors.values() for message in messages]

    def record_error(self, task: str, message: str) -> None:
        self.task_errors = {**self.task_errors, task: [*self.task_errors.get(task, []), message]}

    def discard_errors(self, task: str) -> None:
        """Forget what ``task`` recorded, before it runs again."""
        if task in self.task_errors:
            self.task_errors = {k: v for k, v in self.task_errors.items() if k != task}


@dataclass(eq=False)
class Parcel:
    """One package in one pipeline run.

    Attributes:
        package: Manifest data.
        changelog: Changelog handle.
        git_dir: History queries scoped to the package directory.
        view: Registry metadata, None if never published.
        mismatched_dependencies: Workspace dependencies whose declared range
            rejects the in-workspace version.
        view_error: Why the registry view could not be fetched.
        state: Results of this run.
    """

    package: Package
    changelog: Changelog
    git_dir: GitDirectory
    view: PackageView | None = None
    mismatched_dependencies: tuple[str, ...] = ()
    view_error: str | None = None
    state: PublishState = field(default_factory=PublishState)

    @property
    def name(self) -> str:
        return self.package.name

    @property
    def version(self) -> str:
        return self.package.version

    @property
    def releasable(self) -> bool:
        """Selected for this run with a resolved version."""
        return bool(self.state.is_selected_to_publish) and self.state.release_version is not None

    def __repr__(self) -> str:
        return f"Parcel({self.package.identifier})"
