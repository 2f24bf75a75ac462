"""Tests for release type resolution and propagation."""

from pathlib import Path

import pytest
from conftest import build_graph, make_logs

from pyparcel.errors import CyclicDependencyError
from pyparcel.git.logs import PackageGitLogs
from pyparcel.publish import (
    CommandOptions,
    ParcelGraph,
    propagate_release_types,
    resolve_min_release_type,
    resolve_promotion_release_type,
    resolve_release_version,
)
from pyparcel.publish.resolver import change_types, has_unpublished_changes
from pyparcel.publish.types import Parcel
from pyparcel.registry import PackageView
from pyparcel.versioning.changelog import ChangelogChanges, ChangeType
from pyparcel.versioning.release_type import ReleaseType
from pyparcel.workspace import Package


def record(parcel: Parcel, logs: PackageGitLogs | None, options: CommandOptions, changes=None):
    """Write what find_unpublished would write."""
    changes = changes or ChangelogChanges()
    parcel.state.assign(
        logs=logs,
        changelog_changes=changes,
        has_unpublished_changes=has_unpublished_changes(logs, changes),
    )
    parcel.state.assign(min_release_type=resolve_min_release_type(parcel, options))


def record_all(graph: ParcelGraph, options: CommandOptions, **titles: tuple[str, ...]) -> None:
    for parcel in graph:
        record(parcel, make_logs(*titles.get(parcel.name, ())), options)


def unpublished(kind: ChangeType, *entries: str) -> ChangelogChanges:
    return ChangelogChanges(total_count=len(entries), versions={"unpublished": {kind: list(entries)}})


def published_view(name: str, *versions: str) -> PackageView:
    return PackageView(name=name, versions=list(versions), dist_tags={"latest": versions[-1]})


class TestMinReleaseType:
    def test_fix_commit_is_patch(self):
        graph = build_graph({"b": []})
        record(graph["b"], make_logs("fix: handle empty input"), CommandOptions())

        assert graph["b"].state.min_release_type is ReleaseType.PATCH

    def test_breaking_commit_is_major(self):
        graph = build_graph({"c": []})
        record(graph["c"], make_logs("fix: typo", "feat(api)!: drop v1 endpoints"), CommandOptions())

        assert graph["c"].state.min_release_type is ReleaseType.MAJOR

    def test_non_conventional_commits_default_to_patch(self):
        graph = build_graph({"b": []})
        record(graph["b"], make_logs("Update README"), CommandOptions())

        assert graph["b"].state.min_release_type is ReleaseType.PATCH

    def test_no_changes_needs_no_release(self):
        graph = build_graph({"a": []})
        record(graph["a"], make_logs(), CommandOptions())

        state = graph["a"].state
        assert state.has_unpublished_changes is False
        assert state.min_release_type is None
        assert state.is_set("min_release_type")

    def test_changelog_section_wins_over_commits(self):
        graph = build_graph({"a": []})
        changes = unpublished(ChangeType.NEW_FEATURES, "Added `bar()`.")
        record(graph["a"], make_logs("fix: small"), CommandOptions(), changes=changes)

        assert graph["a"].state.min_release_type is ReleaseType.MINOR

    def test_changelog_entries_without_commits_count(self):
        graph = build_graph({"a": []})
        changes = unpublished(ChangeType.BUG_FIXES, "Fixed it.")
        record(graph["a"], make_logs(), CommandOptions(), changes=changes)

        assert graph["a"].state.has_unpublished_changes is True
        assert graph["a"].state.min_release_type is ReleaseType.PATCH

    def test_unresolvable_history_counts_as_changed(self):
        graph = build_graph({"a": []})
        record(graph["a"], None, CommandOptions())

        assert graph["a"].state.has_unpublished_changes is True
        assert graph["a"].state.min_release_type is ReleaseType.PATCH

    def test_named_package_released_without_changes(self):
        graph = build_graph({"a": []})
        record(graph["a"], make_logs(), CommandOptions(package_names=("a",)))

        assert graph["a"].state.min_release_type is ReleaseType.PATCH

    def test_glob_does_not_force_a_release(self):
        graph = build_graph({"a": []})
        record(graph["a"], make_logs(), CommandOptions(package_names=("a*",)))

        assert graph["a"].state.min_release_type is None

    def test_named_package_keeps_larger_bump(self):
        graph = build_graph({"a": []})
        record(graph["a"], make_logs("feat: new"), CommandOptions(package_names=("a",)))

        assert graph["a"].state.min_release_type is ReleaseType.MINOR


def test_change_types_empty_without_history():
    assert change_types(None, None) == set()
    assert change_types(ChangelogChanges(), make_logs("feat: x")) == {ChangeType.NEW_FEATURES}


class TestPropagation:
    def test_dependent_inherits_patch(self):
        # a depends on b; only b changed.
        graph = build_graph({"a": ["b"], "b": []})
        options = CommandOptions()
        record_all(graph, options, b=("fix: off by one",))

        assert graph["b"].state.min_release_type is ReleaseType.PATCH
        assert graph["a"].state.min_release_type is None

        propagate_release_types(graph, options)

        assert graph["b"].state.release_type is ReleaseType.PATCH
        assert graph["a"].state.release_type is ReleaseType.PATCH
        assert graph["a"].state.is_selected_to_publish is True
        assert graph["b"].state.is_selected_to_publish is True

    def test_breaking_change_does_not_reach_unrelated_package(self):
        graph = build_graph({"c": [], "d": []})
        options = CommandOptions()
        record_all(graph, options, c=("feat!: rewrite",))

        propagate_release_types(graph, options)

        assert graph["c"].state.release_type is ReleaseType.MAJOR
        assert graph["d"].state.release_type is None
        assert graph["d"].state.is_selected_to_publish is False

    def test_major_dependency_gives_patch_floor(self):
        graph = build_graph({"app": ["lib"], "lib": []})
        options = CommandOptions()
        record_all(graph, options, lib=("feat!: rewrite",))

        propagate_release_types(graph, options)

        assert graph["app"].state.release_type is ReleaseType.PATCH

    def test_local_bump_larger_than_floor_wins(self):
        graph = build_graph({"app": ["lib"], "lib": []})
        options = CommandOptions()
        record_all(graph, options, lib=("fix: x",), app=("feat: y",))

        propagate_release_types(graph, options)

        assert graph["app"].state.release_type is ReleaseType.MINOR

    def test_transitive(self):
        graph = build_graph({"top": ["mid"], "mid": ["base"], "base": []})
        options = CommandOptions()
        record_all(graph, options, base=("fix: x",))

        propagate_release_types(graph, options)

        assert all(p.state.release_type is ReleaseType.PATCH for p in graph)

    def test_release_type_never_below_local_minimum(self):
        graph = build_graph({"app": ["lib", "util"], "lib": [], "util": []})
        options = CommandOptions()
        record_all(graph, options, app=("feat!: x",), lib=("fix: y",), util=("feat: z",))

        propagate_release_types(graph, options)

        for parcel in graph:
            state = parcel.state
            assert state.release_type is not None
            assert state.release_type.rank() >= state.min_release_type.rank()

    def test_exclude_deps(self):
        graph = build_graph({"a": ["b"], "b": []})
        options = CommandOptions(exclude_deps=True)
        record_all(graph, options, b=("fix: x",))

        propagate_release_types(graph, options)

        assert graph["b"].state.is_selected_to_publish is True
        assert graph["a"].state.is_selected_to_publish is False

    def test_only_scoped_changes_count(self):
        graph = build_graph({"a": ["b"], "b": [], "other": []})
        options = CommandOptions(package_names=("b",))
        record_all(graph, options, a=("feat: ignored",), b=("fix: x",), other=("fix: y",))

        propagate_release_types(graph, options)

        assert graph["b"].state.release_type is ReleaseType.PATCH
        assert graph["a"].state.release_type is ReleaseType.PATCH
        assert graph["other"].state.is_selected_to_publish is False

    def test_excluded_package_not_selected(self):
        graph = build_graph({"a": ["b"], "b": []})
        options = CommandOptions(exclude=("a",))
        record_all(graph, options, b=("fix: x",))

        propagate_release_types(graph, options)

        assert graph["a"].state.is_selected_to_publish is False
        assert graph["b"].state.is_selected_to_publish is True

    def test_private_package_not_selected(self):
        private = Package(name="tool", version="1.0.0", path=Path("/ws/tool"), private=True)
        graph = build_graph({"tool": []}, packages={"tool": private})
        options = CommandOptions()
        record_all(graph, options, tool=("fix: x",))

        propagate_release_types(graph, options)

        assert graph["tool"].state.is_selected_to_publish is False

    def test_non_integral_package_not_selected(self):
        graph = build_graph({"a": []})
        options = CommandOptions()
        graph["a"].state.assign(integral=False)
        record_all(graph, options, a=("fix: x",))

        propagate_release_types(graph, options)

        assert graph["a"].state.is_selected_to_publish is False

    def test_idempotent(self):
        graph = build_graph({"a": ["b"], "b": []})
        options = CommandOptions()
        record_all(graph, options, b=("feat: x",))

        propagate_release_types(graph, options)
        first = {p.name: p.state.model_dump() for p in graph}
        propagate_release_types(graph, options)

        assert {p.name: p.state.model_dump() for p in graph} == first

    def test_cycle_raises_before_writing(self):
        graph = build_graph({"a": ["b"], "b": ["a"]})
        options = CommandOptions()
        record_all(graph, options, a=("fix: x",))

        with pytest.raises(CyclicDependencyError):
            propagate_release_types(graph, options)

        assert not any(p.state.is_set("release_type") for p in graph)


class TestReleaseVersion:
    def test_unpublished_manifest_version_released_as_is(self):
        graph = build_graph({"a": []})
        graph["a"].view = published_view("a", "0.9.0")

        version = resolve_release_version(graph["a"], ReleaseType.MINOR, CommandOptions(), "rc")

        assert version == "1.0.0"

    def test_never_published(self):
        graph = build_graph({"a": []})

        assert resolve_release_version(graph["a"], ReleaseType.MAJOR, CommandOptions(), "rc") == "1.0.0"

    @pytest.mark.parametrize(
        "release_type,expected",
        [
            (ReleaseType.PATCH, "1.0.1"),
            (ReleaseType.MINOR, "1.1.0"),
            (ReleaseType.MAJOR, "2.0.0"),
        ],
    )
    def test_stable_bumps(self, release_type, expected):
        graph = build_graph({"a": []})
        graph["a"].view = published_view("a", "1.0.0")

        assert resolve_release_version(graph["a"], release_type, CommandOptions(), "rc") == expected

    def test_skips_published_versions(self):
        graph = build_graph({"a": []})
        graph["a"].view = published_view("a", "1.0.0", "1.0.1")

        assert resolve_release_version(graph["a"], ReleaseType.PATCH, CommandOptions(), "rc") == "1.0.2"

    def test_prerelease_in_pep440_spelling(self):
        graph = build_graph({"a": []})
        graph["a"].view = published_view("a", "1.0.0")
        options = CommandOptions(prerelease=True)

        assert resolve_release_version(graph["a"], ReleaseType.MINOR, options, "rc") == "1.1.0rc0"

    def test_prerelease_counter_bumped_when_covered(self):
        graph = build_graph({"a": []}, versions={"a": "1.1.0rc0"})
        graph["a"].view = published_view("a", "1.0.0", "1.1.0rc0")
        options = CommandOptions(prerelease=True)

        assert resolve_release_version(graph["a"], ReleaseType.PATCH, options, "rc") == "1.1.0rc1"

    def test_stable_bump_finalizes_prerelease(self):
        graph = build_graph({"a": []}, versions={"a": "2.0.0rc1"})
        graph["a"].view = published_view("a", "1.0.0", "2.0.0rc1")

        version = resolve_release_version(
            graph["a"], ReleaseType.MAJOR, CommandOptions(prerelease=True), "rc", prerelease=False
        )

        assert version == "2.0.0"

    def test_identifier_without_pep440_spelling(self):
        graph = build_graph({"a": []})
        graph["a"].view = published_view("a", "1.0.0")

        with pytest.raises(ValueError):
            resolve_release_version(graph["a"], ReleaseType.PATCH, CommandOptions(prerelease=True), "next")


class TestPromotionReleaseType:
    @pytest.mark.parametrize(
        "version,expected",
        [
            ("2.0.0rc1", ReleaseType.MAJOR),
            ("1.3.0rc0", ReleaseType.MINOR),
            ("1.2.4b2", ReleaseType.PATCH),
        ],
    )
    def test_published_prerelease(self, version, expected):
        graph = build_graph({"a": []}, versions={"a": version})
        graph["a"].view = published_view("a", "1.0.0", version)

        assert resolve_promotion_release_type(graph["a"]) is expected

    def test_stable_version_not_promotable(self):
        graph = build_graph({"a": []})
        graph["a"].view = published_view("a", "1.0.0")

        assert resolve_promotion_release_type(graph["a"]) is None

    def test_unpublished_prerelease_not_promotable(self):
        graph = build_graph({"a": []}, versions={"a": "2.0.0rc1"})
        graph["a"].view = published_view("a", "1.0.0")

        assert resolve_promotion_release_type(graph["a"]) is None

    def test_no_view(self):
        graph = build_graph({"a": []}, versions={"a": "2.0.0rc1"})

        assert resolve_promotion_release_type(graph["a"]) is None
