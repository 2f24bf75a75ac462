"""Parcel graph: one parcel per package, dependency edges by index."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from pyparcel.errors import CyclicDependencyError, GraphBuildError, PyParcelError
from pyparcel.execution.parallel import map_bounded
from pyparcel.execution.retry import call_with_retry
from pyparcel.git.directory import GitDirectory
from pyparcel.publish.types import Parcel
from pyparcel.registry.base import PackageView
from pyparcel.versioning.changelog import Changelog
from pyparcel.workspace.package import Package
from pyparcel.workspace.workspace import WorkspacesInfo

if TYPE_CHECKING:
    from pyparcel.publish.context import PublishContext

logger = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


class ParcelGraph:
    """Parcels in a flat list with dependency edges stored as indices.

    Attributes:
        parcels: Parcels sorted by name.
    """

    def __init__(self, parcels: list[Parcel], dependencies: list[tuple[int, ...]]) -> None:
        self.parcels = parcels
        self._index = {parcel.name: i for i, parcel in enumerate(parcels)}
        self._dependencies = [tuple(sorted(set(edges))) for edges in dependencies]
        self._dependents: list[list[int]] = [[] for _ in parcels]
        for i, edges in enumerate(self._dependencies):
            for dep in edges:
                self._dependents[dep].append(i)

    def __len__(self) -> int:
        return len(self.parcels)

    def __iter__(self) -> Iterator[Parcel]:
        return iter(self.parcels)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __getitem__(self, name: str) -> Parcel:
        return self.parcels[self._index[name]]

    def get(self, name: str) -> Parcel | None:
        i = self._index.get(name)
        return self.parcels[i] if i is not None else None

    def dependencies_of(self, parcel: Parcel) -> list[Parcel]:
        return [self.parcels[i] for i in self._dependencies[self._index[parcel.name]]]

    def dependents_of(self, parcel: Parcel) -> list[Parcel]:
        return [self.parcels[i] for i in self._dependents[self._index[parcel.name]]]

    def topological_order(self) -> list[Parcel]:
        """Parcels with every dependency placed before its dependents.

        Iterative depth-first search with white/gray/black marking.

        Raises:
            CyclicDependencyError: If the graph has a cycle.
        """
        color = [_WHITE] * len(self.parcels)
        order: list[int] = []

        for start in range(len(self.parcels)):
            if color[start] != _WHITE:
                continue
            color[start] = _GRAY
            stack = [(start, iter(self._dependencies[start]))]
            while stack:
                node, children = stack[-1]
                for child in children:
                    if color[child] == _GRAY:
                        path = [i for i, _ in stack]
                        cycle = [*path[path.index(child) :], child]
                        raise CyclicDependencyError([self.parcels[i].name for i in cycle])
                    if color[child] == _WHITE:
                        color[child] = _GRAY
                        stack.append((child, iter(self._dependencies[child])))
                        break
                else:
                    color[node] = _BLACK
                    order.append(node)
                    stack.pop()

        return [self.parcels[i] for i in order]

    def levels(self) -> list[list[Parcel]]:
        """Group parcels so every parcel comes after the groups of its dependencies."""
        depth: dict[str, int] = {}
        for parcel in self.topological_order():
            deps = self.dependencies_of(parcel)
            depth[parcel.name] = 1 + max((depth[d.name] for d in deps), default=-1)
        levels: list[list[Parcel]] = [[] for _ in range(max(depth.values(), default=-1) + 1)]
        for parcel in self.parcels:
            levels[depth[parcel.name]].append(parcel)
        return levels


def split_identifier(identifier: str) -> tuple[str, str]:
    """Split a ``name@version`` key."""
    name, _, version = identifier.rpartition("@")
    return (name, version) if name else (identifier, "")


def build_parcel_graph(
    info: WorkspacesInfo,
    *,
    make_changelog: Callable[[Path], Changelog],
    make_git_dir: Callable[[Path], GitDirectory],
    views: Mapping[str, PackageView] | None = None,
    view_errors: Mapping[str, str] | None = None,
    packages: Mapping[str, Package] | None = None,
) -> ParcelGraph:
    """Create one parcel per workspace project and wire dependency edges.

    Args:
        info: ``name@version`` -> project info.
        make_changelog: Changelog handle factory, called with the package directory.
        make_git_dir: History handle factory, called with the package directory.
        views: Pre-fetched registry views by name.
        view_errors: Final view failures by name.
        packages: Full manifest data by name. Without it, packages are built
            from the info keys alone.

    Raises:
        GraphBuildError: If a workspace dependency names an unknown package.
    """
    views = views or {}
    view_errors = view_errors or {}
    packages = packages or {}

    entries = sorted(
        ((split_identifier(key), project) for key, project in info.items()),
        key=lambda entry: entry[0],
    )
    parcels: list[Parcel] = []
    for (name, version), project in entries:
        package = packages.get(name) or Package(name=name, version=version, path=project.location)
        if project.mismatched_workspace_dependencies:
            logger.warning(
                "%s declares ranges that reject the workspace versions of: %s",
                name,
                ", ".join(project.mismatched_workspace_dependencies),
            )
        parcels.append(
            Parcel(
                package=package,
                changelog=make_changelog(project.location),
                git_dir=make_git_dir(project.location),
                view=views.get(name),
                mismatched_dependencies=tuple(project.mismatched_workspace_dependencies),
                view_error=view_errors.get(name),
            )
        )

    index = {parcel.name: i for i, parcel in enumerate(parcels)}
    edges: list[tuple[int, ...]] = []
    for (name, _), project in entries:
        targets = []
        for dep in project.workspace_dependencies:
            if dep not in index:
                raise GraphBuildError(name, dep)
            targets.append(index[dep])
        edges.append(tuple(targets))

    return ParcelGraph(parcels, edges)


async def prepare_parcels(ctx: PublishContext) -> ParcelGraph:
    """Gather workspace info and registry views, then build the graph.

    Views are fetched concurrently and retried. A view that still fails is kept
    as ``view_error`` on its parcel; any other failure aborts.
    """
    info = await ctx.workspace.get_info_async()
    names = [split_identifier(key)[0] for key in info]

    async def fetch(name: str) -> PackageView | None:
        return await call_with_retry(ctx.retry_policy, ctx.registry.get_view, name)

    results = await map_bounded(names, fetch, concurrency=ctx.concurrency)

    views: dict[str, PackageView] = {}
    view_errors: dict[str, str] = {}
    for name, result in zip(names, results, strict=True):
        if isinstance(result, PyParcelError):
            logger.warning("Cannot fetch registry metadata of %s: %s", name, result)
            view_errors[name] = str(result)
        elif isinstance(result, BaseException):
            raise result
        elif result is not None:
            views[name] = result

    assert ctx.make_changelog is not None and ctx.make_git_dir is not None
    return build_parcel_graph(
        info,
        make_changelog=ctx.make_changelog,
        make_git_dir=ctx.make_git_dir,
        views=views,
        view_errors=view_errors,
        packages=ctx.workspace.packages,
    )
