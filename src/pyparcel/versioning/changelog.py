"""Reading and cutting off the unpublished section of CHANGELOG.md.

Entries waiting for a release live under an ``## Unpublished`` heading, grouped
by ``### <kind>`` subsections::

    ## Unpublished

    ### Breaking changes
    - Removed `foo()`.

    ### New features
    - Added `bar()`.

The kind of a subsection is taken from keywords in its heading (``breaking``,
``feature``, ``fix``). Anything else counts as "others".
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

UNPUBLISHED_VERSION = "unpublished"

_VERSION_HEADING = re.compile(r"^##\s+(?P<title>.+?)\s*$")
_KIND_HEADING = re.compile(r"^###\s+(?P<title>.+?)\s*$")
_ENTRY = re.compile(r"^\s*[-*]\s+(?P<text>.+?)\s*$")


class ChangeType(str, Enum):
    """Kinds of changelog entries, from most to least severe."""

    BREAKING_CHANGES = "breaking-changes"
    NEW_FEATURES = "new-features"
    BUG_FIXES = "bug-fixes"
    OTHERS = "others"


class ChangelogChanges(BaseModel):
    """Entries found in a changelog, keyed by version then kind."""

    total_count: int = 0
    versions: dict[str, dict[ChangeType, list[str]]] = Field(default_factory=dict)

    def entries(self, kind: ChangeType, version: str = UNPUBLISHED_VERSION) -> list[str]:
        return self.versions.get(version, {}).get(kind, [])


def classify_heading(title: str) -> ChangeType:
    """Map a ``###`` heading to a change type."""
    lowered = title.lower()
    if "breaking" in lowered:
        return ChangeType.BREAKING_CHANGES
    if "feature" in lowered:
        return ChangeType.NEW_FEATURES
    if "fix" in lowered:
        return ChangeType.BUG_FIXES
    return ChangeType.OTHERS


class Changelog:
    """A package CHANGELOG.md file.

    Attributes:
        path: Location of the file. It may not exist yet.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def _lines(self) -> list[str]:
        if not self.exists():
            return []
        return self.path.read_text(encoding="utf-8").splitlines()

    def get_changes(self) -> ChangelogChanges:
        """Collect entries from the unpublished section."""
        groups: dict[ChangeType, list[str]] = {}
        in_unpublished = False
        kind = ChangeType.OTHERS

        for line in self._lines():
            heading = _VERSION_HEADING.match(line)
            if heading:
                in_unpublished = heading.group("title").lower() == UNPUBLISHED_VERSION
                kind = ChangeType.OTHERS
                continue
            if not in_unpublished:
                continue
            sub = _KIND_HEADING.match(line)
            if sub:
                kind = classify_heading(sub.group("title"))
                continue
            entry = _ENTRY.match(line)
            if entry:
                groups.setdefault(kind, []).append(entry.group("text"))

        total = sum(len(v) for v in groups.values())
        versions = {UNPUBLISHED_VERSION: groups} if groups else {}
        return ChangelogChanges(total_count=total, versions=versions)

    def cut_off(self, version: str, *, today: date | None = None) -> bool:
        """Turn the unpublished section into a released one.

        A fresh, empty unpublished section is opened above it.

        Returns:
            True if the file was changed.
        """
        lines = self._lines()
        stamp = (today or date.today()).isoformat()

        for i, line in enumerate(lines):
            heading = _VERSION_HEADING.match(line)
            if heading:
                if heading.group("title").lower() == UNPUBLISHED_VERSION:
                    lines[i : i + 1] = ["## Unpublished", "", f"## {version} - {stamp}"]
                    self._write(lines)
                    return True
                break

        return False

    def _write(self, lines: list[str]) -> None:
        self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")
