"""Pipeline tasks.

Every task reads the state written by earlier tasks and writes its own fields
on each parcel. Tasks that change anything outside the process are marked
``mutating``; in a dry run they are replaced by their preview.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from pyparcel.errors import GitError, IntegrityError, PyParcelError, UncleanRepositoryError
from pyparcel.execution.parallel import map_bounded
from pyparcel.execution.retry import call_with_retry
from pyparcel.filters import match_scope
from pyparcel.publish.context import PublishContext
from pyparcel.publish.graph import ParcelGraph
from pyparcel.publish.options import CommandOptions
from pyparcel.publish.resolver import (
    has_unpublished_changes,
    propagate_release_types,
    resolve_min_release_type,
    resolve_promotion_release_type,
    resolve_release_version,
)
from pyparcel.publish.types import ActionType, Parcel
from pyparcel.versioning.semver import parse_version, same_version
from pyparcel.workspace.package import Package
from pyparcel.workspace.pyproject import set_dependency_versions, set_version

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class TaskRun:
    """What a task works on.

    Attributes:
        ctx: Collaborators.
        options: Run options.
        action: Selected action.
        graph: Parcels of this run.
        resumed: State was restored from a backup.
        listed: Parcels reported by the list action.
    """

    ctx: PublishContext
    options: CommandOptions
    action: ActionType
    graph: ParcelGraph
    resumed: bool = False
    listed: list[Parcel] = field(default_factory=list)

    @property
    def releasable(self) -> list[Parcel]:
        return [parcel for parcel in self.graph if parcel.releasable]


def _every_parcel(parcel: Parcel) -> bool:
    return True


def _releasable(parcel: Parcel) -> bool:
    return parcel.releasable


@dataclass(frozen=True)
class Task:
    """One step of a pipeline.

    Attributes:
        name: Task name.
        run: Task body.
        writes: State fields the task sets on each parcel it applies to.
        mutating: Changes files, git or the registry.
        preview: Describes what a mutating task would do.
        applies_to: Parcels the task writes state for.
    """

    name: str
    run: Callable[[TaskRun], Awaitable[None]]
    writes: tuple[str, ...] = ()
    mutating: bool = False
    preview: Callable[[TaskRun], list[str]] | None = None
    applies_to: Callable[[Parcel], bool] = _every_parcel

    def is_done(self, graph: ParcelGraph) -> bool:
        """Whether every parcel the task applies to already carries its fields."""
        if not self.writes:
            return False
        targets = [parcel for parcel in graph if self.applies_to(parcel)]
        return bool(targets) and all(parcel.state.is_set(*self.writes) for parcel in targets)


def _raise_unexpected(results: Sequence[object]) -> None:
    for result in results:
        if isinstance(result, BaseException):
            raise result


def tag_name(run: TaskRun, parcel: Parcel, version: str) -> str:
    return run.ctx.config.versioning.tag_format.format(name=parcel.name, version=version)


def last_release_ref(run: TaskRun, parcel: Parcel) -> str | None:
    """Tag of the last published version, None if the package was never published."""
    view = parcel.view
    if view is None:
        return None
    version = view.latest or (view.versions[-1] if view.versions else None)
    if version is None:
        return None
    return tag_name(run, parcel, version)


# --- read-only tasks ---------------------------------------------------------


async def check_repository(run: TaskRun) -> None:
    """Refuse to work on a dirty working tree."""
    if run.options.skip_repo_checks:
        logger.info("Skipping repository checks")
        return
    if run.resumed:
        # Files changed by the interrupted run are expected.
        logger.debug("Resumed run, not checking the working tree")
        return
    repo = run.ctx.repo
    if not repo.is_clean():
        raise UncleanRepositoryError(run.ctx.root)
    logger.info("Working tree is clean on %s", repo.current_branch())


def integrity_problems(parcel: Parcel) -> list[str]:
    """Reasons the parcel cannot be released safely."""
    problems: list[str] = []
    if parcel.view_error:
        problems.append(f"registry metadata unavailable: {parcel.view_error}")
    if parcel.mismatched_dependencies:
        problems.append(
            "declared ranges reject the workspace versions of "
            + ", ".join(parcel.mismatched_dependencies)
        )
    try:
        current = parse_version(parcel.version)
    except ValueError:
        problems.append(f"invalid version {parcel.version!r}")
        return problems

    latest = parcel.view.latest if parcel.view else None
    if latest:
        try:
            behind = current < parse_version(latest)
        except ValueError:
            behind = False
        if behind:
            problems.append(f"version {parcel.version} is behind the published {latest}")
    return problems


async def check_integrity(run: TaskRun) -> None:
    for parcel in run.graph:
        if parcel.state.is_set("integral"):
            continue
        problems = integrity_problems(parcel)
        for problem in problems:
            error = IntegrityError(parcel.name, problem)
            logger.warning("%s", error)
            parcel.state.record_error("check_integrity", str(error))
        parcel.state.assign(integral=not problems)


async def find_unpublished(run: TaskRun) -> None:
    """Collect history and changelog entries since the last release."""
    pending = [p for p in run.graph if not p.state.is_set("has_unpublished_changes", "min_release_type")]
    policy = run.ctx.retry_policy

    async def collect(parcel: Parcel) -> None:
        state = parcel.state
        since = last_release_ref(run, parcel)
        try:
            logs = await call_with_retry(policy, parcel.git_dir.get_logs_async, since)
        except GitError as e:
            state.record_error("find_unpublished", f"cannot read history: {e}")
            logs = None
        else:
            if logs is None:
                logger.warning(
                    "%s: changes since %s cannot be determined, treating it as changed",
                    parcel.name,
                    since,
                )
        changes = parcel.changelog.get_changes()
        state.assign(
            logs=logs,
            changelog_changes=changes,
            has_unpublished_changes=has_unpublished_changes(logs, changes),
        )
        state.assign(min_release_type=resolve_min_release_type(parcel, run.options))

    results = await map_bounded(pending, collect, concurrency=run.ctx.concurrency)
    _raise_unexpected(results)


async def find_promotable(run: TaskRun) -> None:
    """Select published prereleases to finalize."""
    for parcel in run.graph:
        if parcel.state.is_set("has_unpublished_changes", "min_release_type"):
            continue
        release_type = None
        if match_scope(parcel.package, run.options.package_names):
            release_type = resolve_promotion_release_type(parcel)
        parcel.state.assign(
            has_unpublished_changes=release_type is not None,
            min_release_type=release_type,
        )


async def resolve_release_types(run: TaskRun) -> None:
    options = run.options
    propagate_release_types(run.graph, options, root=run.ctx.root)

    identifier = options.prerelease_identifier(run.ctx.config.versioning.prerelease_identifier)
    prerelease = bool(options.prerelease) and run.action is not ActionType.PROMOTE
    for parcel in run.graph:
        state = parcel.state
        if not state.is_selected_to_publish or state.is_set("release_version"):
            continue
        assert state.release_type is not None
        try:
            version = resolve_release_version(
                parcel, state.release_type, options, identifier, prerelease=prerelease
            )
        except ValueError as e:
            state.record_error("resolve_release_types", f"cannot compute the next version: {e}")
            continue
        state.assign(release_version=version)
        logger.info("%s: %s -> %s (%s)", parcel.name, parcel.version, version, state.release_type.value)


async def list_unpublished(run: TaskRun) -> None:
    run.listed = [parcel for parcel in run.graph if parcel.state.is_selected_to_publish]
    for parcel in run.listed:
        logger.info("%s has unpublished changes", parcel.name)


# --- mutating tasks ----------------------------------------------------------


async def update_versions(run: TaskRun) -> None:
    for parcel in run.releasable:
        version = parcel.state.release_version
        assert version is not None
        if same_version(parcel.version, version):
            continue
        set_version(parcel.package, version)
        logger.info("Set %s version to %s", parcel.name, version)
    run.ctx.workspace.reload()


def preview_update_versions(run: TaskRun) -> list[str]:
    return [
        f"set {p.name} version {p.version} -> {p.state.release_version}"
        for p in run.releasable
        if not same_version(p.version, p.state.release_version or "")
    ]


def _dependency_versions(run: TaskRun, parcel: Parcel) -> dict[str, str]:
    return {
        dep.name: dep.state.release_version
        for dep in run.graph.dependencies_of(parcel)
        if dep.releasable and dep.state.release_version is not None
    }


async def update_dependents(run: TaskRun) -> None:
    """Widen requirements on released workspace members."""
    for parcel in run.releasable:
        versions = _dependency_versions(run, parcel)
        if versions and set_dependency_versions(parcel.package, versions):
            logger.info("Updated %s requirements on %s", parcel.name, ", ".join(sorted(versions)))
    run.ctx.workspace.reload()


def preview_update_dependents(run: TaskRun) -> list[str]:
    lines = []
    for parcel in run.releasable:
        versions = _dependency_versions(run, parcel)
        if versions:
            pinned = ", ".join(f"{name}>={version}" for name, version in sorted(versions.items()))
            lines.append(f"require {pinned} in {parcel.name}")
    return lines


def _changelogs_to_cut(run: TaskRun) -> list[Parcel]:
    return [
        p for p in run.releasable if p.changelog.exists() and p.changelog.get_changes().total_count
    ]


async def cut_off_changelogs(run: TaskRun) -> None:
    for parcel in _changelogs_to_cut(run):
        assert parcel.state.release_version is not None
        parcel.changelog.cut_off(parcel.state.release_version, today=run.ctx.today)
        logger.info("Cut off %s changelog at %s", parcel.name, parcel.state.release_version)


def preview_cut_off_changelogs(run: TaskRun) -> list[str]:
    return [f"cut off {p.changelog.path.name} of {p.name}" for p in _changelogs_to_cut(run)]


def release_commit_message(run: TaskRun) -> str:
    template = run.options.commit_message or run.ctx.config.versioning.commit_message
    packages = ", ".join(f"{p.name}@{p.state.release_version}" for p in run.releasable)
    return template.format(packages=packages)


async def commit_changes(run: TaskRun) -> None:
    """Commit rewritten manifests and changelogs, then tag every released version."""
    parcels = run.releasable
    if not parcels:
        return
    repo = run.ctx.repo
    policy = run.ctx.retry_policy

    async def git(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return await call_with_retry(policy, asyncio.to_thread, fn, *args, **kwargs)

    paths = [p.package.pyproject_path for p in parcels]
    paths.extend(p.changelog.path for p in parcels if p.changelog.exists())
    await git(repo.add, paths)
    if repo.has_staged_changes():
        sha = await git(repo.commit, release_commit_message(run))
        logger.info("Created release commit %s", sha[:12])

    for parcel in parcels:
        assert parcel.state.release_version is not None
        tag = tag_name(run, parcel, parcel.state.release_version)
        if not repo.tag_exists(tag):
            await git(repo.create_tag, tag, message=tag)


def preview_commit_changes(run: TaskRun) -> list[str]:
    if not run.releasable:
        return []
    lines = [f"commit '{release_commit_message(run)}'"]
    lines.extend(
        f"tag {tag_name(run, p, p.state.release_version or '')}" for p in run.releasable
    )
    return lines


ReleaseCall = Callable[[Parcel, str], Awaitable[None]]


async def _release(run: TaskRun, task: str, call: ReleaseCall) -> None:
    """Call the registry for every releasable parcel, dependencies first.

    A parcel whose dependency failed, or was selected but never got a
    version, is not released.
    """
    failed = {p.name for p in run.graph if p.state.is_selected_to_publish and not p.releasable}
    policy = run.ctx.retry_policy

    async def release_one(parcel: Parcel) -> None:
        version = parcel.state.release_version
        assert version is not None
        try:
            await call_with_retry(policy, call, parcel, version)
        except PyParcelError as e:
            logger.error("Releasing %s %s failed: %s", parcel.name, version, e)
            parcel.state.record_error(task, str(e))
            failed.add(parcel.name)
            return
        parcel.state.assign(published=True)
        logger.info("Released %s %s", parcel.name, version)

    for level in run.graph.levels():
        batch = []
        for parcel in level:
            if not parcel.releasable or parcel.state.is_set("published"):
                continue
            broken = [d.name for d in run.graph.dependencies_of(parcel) if d.name in failed]
            if broken:
                parcel.state.record_error(task, f"not released because {', '.join(broken)} failed")
                failed.add(parcel.name)
                continue
            batch.append(parcel)
        results = await map_bounded(batch, release_one, concurrency=run.ctx.concurrency)
        _raise_unexpected(results)


def _released_package(parcel: Parcel, version: str) -> Package:
    return replace(parcel.package, version=version)


async def publish_packages(run: TaskRun) -> None:
    tag = run.options.distribution_tag(run.action)
    registry = run.ctx.registry

    async def publish(parcel: Parcel, version: str) -> None:
        await registry.publish(_released_package(parcel, version), version, tag=tag)

    await _release(run, "publish_packages", publish)


def preview_publish_packages(run: TaskRun) -> list[str]:
    tag = run.options.distribution_tag(run.action)
    return [
        f"publish {p.name} {p.state.release_version} with tag '{tag}'"
        for p in run.releasable
        if not p.state.is_set("published")
    ]


def _is_promoted(parcel: Parcel) -> bool:
    return parcel.state.min_release_type is not None


async def promote_packages(run: TaskRun) -> None:
    """Finalize promoted prereleases; dependents bumped along are published normally."""
    promote_tag = run.options.distribution_tag(ActionType.PROMOTE)
    registry = run.ctx.registry

    async def promote(parcel: Parcel, version: str) -> None:
        package = _released_package(parcel, version)
        if _is_promoted(parcel):
            await registry.promote(package, version, tag=promote_tag)
        else:
            await registry.publish(package, version, tag=run.options.tag)

    await _release(run, "promote_packages", promote)


def preview_promote_packages(run: TaskRun) -> list[str]:
    return [
        f"{'promote' if _is_promoted(p) else 'publish'} {p.name} {p.state.release_version}"
        for p in run.releasable
        if not p.state.is_set("published")
    ]


def _access_team(run: TaskRun) -> str | None:
    if isinstance(run.options.grant_access, str) and run.options.grant_access:
        return run.options.grant_access
    return run.ctx.config.publish.access_team


async def grant_access(run: TaskRun) -> None:
    if not run.options.grant_access:
        return
    team = _access_team(run)
    if not team:
        logger.warning("No team to grant access to, set publish.access_team in pyparcel.yaml")
        return

    registry = run.ctx.registry
    policy = run.ctx.retry_policy

    async def grant(parcel: Parcel) -> None:
        try:
            await call_with_retry(policy, registry.grant_access, parcel.name, team)
        except PyParcelError as e:
            parcel.state.record_error("grant_access", f"granting access to {team} failed: {e}")

    published = [p for p in run.graph if p.state.published]
    results = await map_bounded(published, grant, concurrency=run.ctx.concurrency)
    _raise_unexpected(results)


def preview_grant_access(run: TaskRun) -> list[str]:
    team = _access_team(run)
    if not run.options.grant_access or not team:
        return []
    return [f"grant {team} access to {p.name}" for p in run.releasable]


TASKS: dict[str, Task] = {
    task.name: task
    for task in (
        Task("check_repository", check_repository),
        Task("check_integrity", check_integrity, writes=("integral",)),
        Task(
            "find_unpublished",
            find_unpublished,
            writes=("has_unpublished_changes", "min_release_type"),
        ),
        Task(
            "find_promotable",
            find_promotable,
            writes=("has_unpublished_changes", "min_release_type"),
        ),
        Task(
            "resolve_release_types",
            resolve_release_types,
            writes=("release_type", "is_selected_to_publish"),
        ),
        Task("list_unpublished", list_unpublished),
        Task("update_versions", update_versions, mutating=True, preview=preview_update_versions),
        Task(
            "update_dependents",
            update_dependents,
            mutating=True,
            preview=preview_update_dependents,
        ),
        Task(
            "cut_off_changelogs",
            cut_off_changelogs,
            mutating=True,
            preview=preview_cut_off_changelogs,
        ),
        Task("commit_changes", commit_changes, mutating=True, preview=preview_commit_changes),
        Task(
            "publish_packages",
            publish_packages,
            writes=("published",),
            mutating=True,
            preview=preview_publish_packages,
            applies_to=_releasable,
        ),
        Task(
            "promote_packages",
            promote_packages,
            writes=("published",),
            mutating=True,
            preview=preview_promote_packages,
            applies_to=_releasable,
        ),
        Task("grant_access", grant_access, mutating=True, preview=preview_grant_access),
    )
}
