"""Immutable command options for one publish run."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pyparcel.publish.types import ActionType

DEFAULT_TAG = "latest"
PRERELEASE_TAG = "next"
BACKPORT_TAG = "backport"


class CommandOptions(BaseModel):
    """Options for one run, built once and passed to every task.

    Attributes:
        package_names: Names or globs of packages whose own changes count.
        exclude: Name, glob or path patterns never selected.
        prerelease: Release prereleases; a string sets the identifier.
        tag: Distribution tag for published versions.
        retry: Resume from the last checkpoint.
        commit_message: Release commit message template (``{packages}``).
        exclude_deps: Do not bump packages only because a dependency changed.
        skip_repo_checks: Do not require a clean working tree.
        dry: Compute everything, change nothing.
        list_unpublished: Only report what would be released.
        promote: Finalize published prereleases; a string sets the tag.
        backport: Publish from a maintenance branch; a string sets the tag.
        grant_access: Grant team access after publishing; a string names the team.
    """

    model_config = ConfigDict(frozen=True)

    package_names: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    prerelease: bool | str = False
    tag: str = DEFAULT_TAG
    retry: bool = False
    commit_message: str | None = None
    exclude_deps: bool = False
    skip_repo_checks: bool = False
    dry: bool = False
    list_unpublished: bool = False
    promote: bool | str = False
    backport: bool | str = False
    grant_access: bool | str = False

    def prerelease_identifier(self, default: str) -> str:
        if isinstance(self.prerelease, str) and self.prerelease:
            return self.prerelease
        return default

    def distribution_tag(self, action: ActionType) -> str:
        """Tag that published versions get for ``action``."""
        match action:
            case ActionType.BACKPORT:
                return self.backport if isinstance(self.backport, str) else BACKPORT_TAG
            case ActionType.PROMOTE:
                return self.promote if isinstance(self.promote, str) else self.tag
        if self.prerelease and self.tag == DEFAULT_TAG:
            return PRERELEASE_TAG
        return self.tag


class BackupableOptions(BaseModel):
    """Options that must be identical for a run to resume from a backup."""

    model_config = ConfigDict(frozen=True)

    package_names: tuple[str, ...] = ()
    prerelease: bool | str = False
    exclude: tuple[str, ...] = ()
    tag: str = DEFAULT_TAG
    commit_message: str | None = None
    exclude_deps: bool = False
    dry: bool = False
    list_unpublished: bool = False
    promote: bool | str = False
    backport: bool | str = False


def backupable(options: CommandOptions) -> BackupableOptions:
    """Project options onto the subset stored in backups."""
    return BackupableOptions.model_validate(
        options.model_dump(include=set(BackupableOptions.model_fields))
    )
