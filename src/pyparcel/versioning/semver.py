"""Version parsing and bumping utilities.

Versions are handled as semantic versions. PEP 440 spellings found in
``pyproject.toml`` or on the index (``1.2.0rc1``) are coerced to their semver
equivalent (``1.2.0-rc.1``) so both worlds can be compared.
"""

from __future__ import annotations

from collections.abc import Iterable

import semver
from packaging.version import InvalidVersion
from packaging.version import Version as Pep440Version

from pyparcel.versioning.release_type import ReleaseType

_PEP440_PRE_LABELS = {"a": "alpha", "b": "beta", "rc": "rc"}


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros ("1.2" -> "1.2.0") and
    PEP 440 prereleases ("1.2.0rc1" -> "1.2.0-rc.1").

    Raises:
        ValueError: If the string is neither a semantic nor a PEP 440 version.
    """
    text = version_str.strip().removeprefix("v")
    try:
        return semver.Version.parse(text)
    except ValueError:
        pass

    try:
        pep = Pep440Version(text)
    except InvalidVersion as e:
        raise ValueError(f"Invalid version: {version_str!r}") from e

    parts = list(pep.release[:3])
    while len(parts) < 3:
        parts.append(0)
    prerelease = None
    if pep.pre is not None:
        label, number = pep.pre
        prerelease = f"{_PEP440_PRE_LABELS.get(label, label)}.{number}"
    elif pep.dev is not None:
        prerelease = f"dev.{pep.dev}"
    return semver.Version(*parts, prerelease=prerelease)


def is_prerelease(version_str: str) -> bool:
    """Whether a version string carries a prerelease component."""
    return parse_version(version_str).prerelease is not None


def same_version(a: str, b: str) -> bool:
    """Compare two versions regardless of semver/PEP 440 spelling."""
    try:
        return parse_version(a) == parse_version(b)
    except ValueError:
        return a == b


def _next_prerelease(prerelease: str | None, identifier: str) -> str:
    if not prerelease:
        return f"{identifier}.0"
    parts = prerelease.split(".")
    if parts[0] != identifier:
        return f"{identifier}.0"
    if parts[-1].isdigit() and len(parts) > 1:
        parts[-1] = str(int(parts[-1]) + 1)
        return ".".join(parts)
    return f"{prerelease}.0"


def increment(version: semver.Version, release_type: ReleaseType, identifier: str) -> semver.Version:
    """Bump a version following npm-style semver increment rules.

    A stable bump of a prerelease finalizes it when the prerelease already sits
    at that level ("2.0.0-rc.1" + major -> "2.0.0").

    Args:
        version: Current version.
        release_type: Bump to apply.
        identifier: Prerelease identifier used by the pre-variants ("rc").

    Returns:
        The incremented version.
    """
    base = version.replace(prerelease=None, build=None)

    match release_type:
        case ReleaseType.MAJOR:
            if version.prerelease and version.minor == 0 and version.patch == 0:
                return base
            return version.bump_major()
        case ReleaseType.MINOR:
            if version.prerelease and version.patch == 0:
                return base
            return version.bump_minor()
        case ReleaseType.PATCH:
            if version.prerelease:
                return base
            return version.bump_patch()
        case ReleaseType.PREMAJOR:
            return version.bump_major().replace(prerelease=f"{identifier}.0")
        case ReleaseType.PREMINOR:
            return version.bump_minor().replace(prerelease=f"{identifier}.0")
        case ReleaseType.PREPATCH:
            return version.bump_patch().replace(prerelease=f"{identifier}.0")
        case ReleaseType.PRERELEASE:
            if version.prerelease:
                return base.replace(prerelease=_next_prerelease(version.prerelease, identifier))
            return version.bump_patch().replace(prerelease=f"{identifier}.0")
    raise AssertionError(f"unexpected release type: {release_type}")


def prerelease_covers(version: semver.Version, release_type: ReleaseType) -> bool:
    """Whether an existing prerelease already carries a bump of this size.

    "2.0.0-rc.0" covers any bump, "1.3.0-rc.0" covers minor and patch bumps and
    "1.2.4-rc.0" covers patch bumps only.
    """
    if not version.prerelease:
        return False
    match release_type.stable:
        case ReleaseType.MAJOR:
            return version.minor == 0 and version.patch == 0
        case ReleaseType.MINOR:
            return version.patch == 0
        case _:
            return True


def finalizing_release_type(version: semver.Version) -> ReleaseType | None:
    """The stable release type that turns a prerelease into its final version."""
    if not version.prerelease:
        return None
    if version.patch > 0:
        return ReleaseType.PATCH
    if version.minor > 0:
        return ReleaseType.MINOR
    return ReleaseType.MAJOR


def suggest_version(
    current: str,
    release_type: ReleaseType,
    identifier: str,
    published: Iterable[str] = (),
) -> str:
    """Suggest the next version, skipping versions that are already published.

    Args:
        current: Current manifest version.
        release_type: Bump to apply.
        identifier: Prerelease identifier.
        published: Versions already on the registry.

    Returns:
        The suggested version as a string.
    """
    taken = set()
    for value in published:
        try:
            taken.add(parse_version(value))
        except ValueError:
            continue

    candidate = increment(parse_version(current), release_type, identifier)
    # Collisions keep moving at the same level; prereleases only bump their counter.
    step = ReleaseType.PRERELEASE if release_type.is_prerelease else release_type
    for _ in range(1000):
        if candidate not in taken:
            return str(candidate)
        candidate = increment(candidate, step, identifier)
    raise ValueError(f"Cannot find an unpublished version after {current}")


def to_pep440(version_str: str) -> str:
    """Spell a version the way Python packaging metadata expects ("1.2.0-rc.1" -> "1.2.0rc1").

    Raises:
        ValueError: If the version has no PEP 440 equivalent (custom prerelease labels).
    """
    try:
        return str(Pep440Version(version_str))
    except InvalidVersion as e:
        raise ValueError(f"{version_str!r} cannot be expressed as a PEP 440 version") from e
