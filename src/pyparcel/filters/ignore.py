"""Exclude-based package filtering."""

from __future__ import annotations

import fnmatch
from collections.abc import Sequence
from pathlib import Path

from pyparcel.filters.scope import match_name
from pyparcel.workspace.package import Package


def should_ignore(package: Package, patterns: Sequence[str], root: Path | None = None) -> bool:
    """Check if a package matches any exclude pattern.

    Args:
        package: Package to check.
        patterns: Name, glob or path patterns.
        root: Workspace root; path patterns are matched relative to it.

    Returns:
        True if package should be left out.
    """
    if not patterns:
        return False

    if root is not None and package.path.is_relative_to(root):
        path_str = package.path.relative_to(root).as_posix()
    else:
        path_str = package.path.as_posix()

    for pattern in patterns:
        if match_name(package.name, pattern):
            return True
        if fnmatch.fnmatch(path_str, pattern):
            return True

    return False
