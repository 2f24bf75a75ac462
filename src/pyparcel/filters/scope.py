"""Name-based package selection."""

from __future__ import annotations

import fnmatch
from collections.abc import Sequence

from pyparcel.workspace.package import Package


def parse_scope(scope: str) -> list[str]:
    """Parse a scope string into individual patterns.

    Scope can be comma-separated names or glob patterns:
    - "core,api" -> ["core", "api"]
    - "*-lib" -> ["*-lib"]

    Args:
        scope: Comma-separated scope string.

    Returns:
        List of individual patterns.
    """
    if not scope:
        return []

    patterns = [p.strip() for p in scope.split(",")]
    return [p for p in patterns if p]


def _normalize(value: str) -> str:
    return value.lower().replace("_", "-").replace(".", "-")


def match_name(name: str, pattern: str) -> bool:
    """Check a package name against one name or glob pattern.

    Names are compared in their PEP 503 normalized form, so ``my_pkg`` matches
    ``my-pkg``.
    """
    return fnmatch.fnmatchcase(_normalize(name), _normalize(pattern))


def match_scope(package: Package, patterns: Sequence[str]) -> bool:
    """Check if a package matches any of the scope patterns.

    Args:
        package: Package to check.
        patterns: List of name or glob patterns.

    Returns:
        True if package matches any pattern. No patterns match everything.
    """
    if not patterns:
        return True
    return any(match_name(package.name, pattern) for pattern in patterns)


def is_named(package: Package, patterns: Sequence[str]) -> bool:
    """Whether the package is named explicitly (not through a glob)."""
    return any(
        not any(c in pattern for c in "*?[") and match_name(package.name, pattern)
        for pattern in patterns
    )
