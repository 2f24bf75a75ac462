"""Classifying commit subjects that follow the Conventional Commits format.

Only used when a package's changelog has no unpublished entries.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from pyparcel.git.logs import GitLog
from pyparcel.versioning.changelog import ChangeType

KNOWN_TYPES = (
    "feat",
    "fix",
    "docs",
    "style",
    "refactor",
    "perf",
    "test",
    "chore",
    "ci",
    "build",
    "revert",
)

# type(scope)!: description
_HEADER = re.compile(
    rf"^(?P<type>{'|'.join(KNOWN_TYPES)})"
    r"(?:\((?P<scope>[^)]+)\))?"
    r"(?P<bang>!)?"
    r": (?P<description>.+)$",
    re.IGNORECASE,
)
_BREAKING_FOOTER = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)

_CHANGE_BY_TYPE = {
    "feat": ChangeType.NEW_FEATURES,
    "fix": ChangeType.BUG_FIXES,
    "perf": ChangeType.BUG_FIXES,
    "revert": ChangeType.BUG_FIXES,
}


@dataclass(frozen=True, slots=True)
class ParsedCommit:
    """Header fields of a conventional commit.

    Attributes:
        sha: Commit SHA, empty when parsing a bare message.
        type: Lowercased commit type.
        scope: Text between the parentheses, if any.
        description: Header text after the colon.
        breaking: Marked with ``!`` or a ``BREAKING CHANGE:`` footer.
    """

    sha: str
    type: str
    scope: str | None
    description: str
    breaking: bool

    @property
    def change_type(self) -> ChangeType:
        if self.breaking:
            return ChangeType.BREAKING_CHANGES
        return _CHANGE_BY_TYPE.get(self.type, ChangeType.OTHERS)


def parse_commit_message(message: str, sha: str = "") -> ParsedCommit | None:
    """Parse a full commit message, or return None if the header is not conventional."""
    header, _, body = message.strip().partition("\n")
    match = _HEADER.match(header)
    if match is None:
        return None
    return ParsedCommit(
        sha=sha,
        type=match["type"].lower(),
        scope=match["scope"],
        description=match["description"],
        breaking=bool(match["bang"]) or bool(_BREAKING_FOOTER.search(body)),
    )


def parse_commit(commit: GitLog) -> ParsedCommit | None:
    return parse_commit_message(commit.message, commit.hash)


def classify_commits(commits: Iterable[GitLog]) -> set[ChangeType]:
    """Change types carried by the conventional commits among ``commits``."""
    return {parsed.change_type for c in commits if (parsed := parse_commit(c)) is not None}
