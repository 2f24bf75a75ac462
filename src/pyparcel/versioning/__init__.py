"""Release types, semantic versions, changelogs and commit conventions."""

from pyparcel.versioning.changelog import (
    UNPUBLISHED_VERSION,
    Changelog,
    ChangelogChanges,
    ChangeType,
)
from pyparcel.versioning.conventional import (
    ParsedCommit,
    classify_commits,
    parse_commit,
    parse_commit_message,
)
from pyparcel.versioning.release_type import ReleaseType, bump_floor, max_release_type
from pyparcel.versioning.semver import (
    finalizing_release_type,
    increment,
    is_prerelease,
    parse_version,
    prerelease_covers,
    same_version,
    suggest_version,
    to_pep440,
)

__all__ = [
    "UNPUBLISHED_VERSION",
    "ChangeType",
    "Changelog",
    "ChangelogChanges",
    "ParsedCommit",
    "ReleaseType",
    "bump_floor",
    "classify_commits",
    "finalizing_release_type",
    "increment",
    "is_prerelease",
    "max_release_type",
    "parse_commit",
    "parse_commit_message",
    "parse_version",
    "prerelease_covers",
    "same_version",
    "suggest_version",
    "to_pep440",
]
