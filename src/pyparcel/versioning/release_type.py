"""Release type ordering used by propagation."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum


class ReleaseType(str, Enum):
    """Semantic-version bump categories.

    The stable triad is totally ordered. Prerelease variants share the rank of
    their stable base so they never weaken a bump during propagation.
    """

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PREMAJOR = "premajor"
    PREMINOR = "preminor"
    PREPATCH = "prepatch"
    PRERELEASE = "prerelease"

    @property
    def is_prerelease(self) -> bool:
        return _STABLE_BASE[self] is not self

    @property
    def stable(self) -> ReleaseType:
        """The stable counterpart (``premajor`` -> ``major``)."""
        return _STABLE_BASE[self]

    def rank(self) -> int:
        return _RANK[self.stable]

    def to_prerelease(self) -> ReleaseType:
        """The prerelease counterpart (``minor`` -> ``preminor``)."""
        return _PRE_VARIANT.get(self, self)


_STABLE_BASE: dict[ReleaseType, ReleaseType] = {
    ReleaseType.MAJOR: ReleaseType.MAJOR,
    ReleaseType.MINOR: ReleaseType.MINOR,
    ReleaseType.PATCH: ReleaseType.PATCH,
    ReleaseType.PREMAJOR: ReleaseType.MAJOR,
    ReleaseType.PREMINOR: ReleaseType.MINOR,
    ReleaseType.PREPATCH: ReleaseType.PATCH,
    ReleaseType.PRERELEASE: ReleaseType.PATCH,
}

_RANK: dict[ReleaseType, int] = {
    ReleaseType.PATCH: 1,
    ReleaseType.MINOR: 2,
    ReleaseType.MAJOR: 3,
}

_PRE_VARIANT: dict[ReleaseType, ReleaseType] = {
    ReleaseType.MAJOR: ReleaseType.PREMAJOR,
    ReleaseType.MINOR: ReleaseType.PREMINOR,
    ReleaseType.PATCH: ReleaseType.PREPATCH,
}


def max_release_type(types: Iterable[ReleaseType | None]) -> ReleaseType | None:
    """Return the strongest release type, or None if there is none.

    On equal rank the stable member wins, so a prerelease modifier never lowers
    an otherwise-computed stable bump.
    """
    best: ReleaseType | None = None
    for candidate in types:
        if candidate is None:
            continue
        if best is None or candidate.rank() > best.rank():
            best = candidate
        elif candidate.rank() == best.rank() and best.is_prerelease and not candidate.is_prerelease:
            best = candidate
    return best


def bump_floor(dependency_release: ReleaseType | None) -> ReleaseType | None:
    """Minimum bump a dependent needs when one of its dependencies is released.

    Any dependency release, whatever its size, requires a patch release of the
    dependent.
    """
    if dependency_release is None:
        return None
    return ReleaseType.PATCH
