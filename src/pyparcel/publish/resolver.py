"""Release types: local minimum per parcel, then propagation over the graph."""

from __future__ import annotations

import logging
from pathlib import Path

from pyparcel.filters import is_named, match_scope, should_ignore
from pyparcel.git.logs import PackageGitLogs
from pyparcel.publish.graph import ParcelGraph
from pyparcel.publish.options import CommandOptions
from pyparcel.publish.types import Parcel
from pyparcel.versioning.changelog import UNPUBLISHED_VERSION, ChangelogChanges, ChangeType
from pyparcel.versioning.conventional import classify_commits
from pyparcel.versioning.release_type import ReleaseType, bump_floor, max_release_type
from pyparcel.versioning.semver import (
    finalizing_release_type,
    is_prerelease,
    parse_version,
    prerelease_covers,
    same_version,
    suggest_version,
    to_pep440,
)

logger = logging.getLogger(__name__)

_SEVERITY = {
    ChangeType.BREAKING_CHANGES: ReleaseType.MAJOR,
    ChangeType.NEW_FEATURES: ReleaseType.MINOR,
    ChangeType.BUG_FIXES: ReleaseType.PATCH,
    ChangeType.OTHERS: ReleaseType.PATCH,
}


def has_unpublished_changes(logs: PackageGitLogs | None, changes: ChangelogChanges | None) -> bool:
    """Unresolvable history (``logs is None``) counts as changed."""
    if logs is None:
        return True
    if logs.commits:
        return True
    return changes is not None and changes.total_count > 0


def change_types(changes: ChangelogChanges | None, logs: PackageGitLogs | None) -> set[ChangeType]:
    """Kinds of change recorded for a parcel.

    The changelog's unpublished section wins; commit subjects are only read when
    it is empty.
    """
    if changes is not None:
        kinds = {kind for kind, entries in changes.versions.get(UNPUBLISHED_VERSION, {}).items() if entries}
        if kinds:
            return kinds
    if logs is not None:
        return classify_commits(logs.commits)
    return set()


def resolve_min_release_type(parcel: Parcel, options: CommandOptions) -> ReleaseType | None:
    """Smallest bump the parcel needs on its own.

    Explicitly named packages are released even without changes.
    """
    state = parcel.state
    local: ReleaseType | None = None
    if state.has_unpublished_changes:
        kinds = change_types(state.changelog_changes, state.logs)
        local = max_release_type(_SEVERITY[kind] for kind in kinds) or ReleaseType.PATCH
    if is_named(parcel.package, options.package_names):
        return max_release_type([local, ReleaseType.PATCH])
    return local


def resolve_promotion_release_type(parcel: Parcel) -> ReleaseType | None:
    """Bump that turns the published prerelease in the manifest into its final version."""
    view = parcel.view
    if view is None or not is_prerelease(parcel.version):
        return None
    if not any(same_version(parcel.version, v) for v in view.versions):
        return None
    return finalizing_release_type(parse_version(parcel.version))


def can_publish(parcel: Parcel, options: CommandOptions, root: Path | None = None) -> bool:
    """Whether the parcel may be selected at all."""
    if parcel.package.private:
        return False
    if parcel.state.integral is False:
        return False
    return not should_ignore(parcel.package, options.exclude, root)


def propagate_release_types(
    graph: ParcelGraph,
    options: CommandOptions,
    *,
    root: Path | None = None,
) -> None:
    """Give every parcel its final release type, dependencies first.

    A parcel is released with at least a patch when a dependency is released.
    Only parcels matching ``package_names`` contribute their own changes.

    Raises:
        CyclicDependencyError: Before any state is written.
    """
    order = graph.topological_order()

    for parcel in order:
        state = parcel.state
        if state.is_set("release_type", "is_selected_to_publish"):
            continue

        local = state.min_release_type if match_scope(parcel.package, options.package_names) else None
        floor = None
        if not options.exclude_deps:
            floor = max_release_type(
                bump_floor(dep.state.release_type)
                for dep in graph.dependencies_of(parcel)
                if dep.state.is_selected_to_publish
            )

        release_type = max_release_type([local, floor]) if can_publish(parcel, options, root) else None
        if release_type is not None and local is None:
            logger.debug("%s released because a dependency is released", parcel.name)
        state.assign(release_type=release_type, is_selected_to_publish=release_type is not None)


def resolve_release_version(
    parcel: Parcel,
    release_type: ReleaseType,
    options: CommandOptions,
    prerelease_id: str,
    *,
    prerelease: bool | None = None,
) -> str:
    """Next version of a parcel, in PEP 440 spelling.

    A manifest version that is not published yet is released as-is. Otherwise
    the version is bumped, skipping versions that are already taken.

    Args:
        parcel: The parcel.
        release_type: Final release type.
        options: Run options.
        prerelease_id: Identifier of prerelease versions ("rc").
        prerelease: Overrides ``options.prerelease``.

    Raises:
        ValueError: If the version cannot be parsed or spelled in PEP 440.
    """
    published = parcel.view.versions if parcel.view else []
    current = parcel.version
    if not any(same_version(current, v) for v in published):
        return to_pep440(current)

    use_prerelease = bool(options.prerelease) if prerelease is None else prerelease
    step = release_type.stable
    if use_prerelease:
        if prerelease_covers(parse_version(current), step):
            step = ReleaseType.PRERELEASE
        else:
            step = step.to_prerelease()
    return to_pep440(suggest_version(current, step, prerelease_id, published))
