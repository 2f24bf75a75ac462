"""In-memory registry."""

from __future__ import annotations

from dataclasses import dataclass, field

from pyparcel.errors import RegistryError
from pyparcel.registry.base import PackageView
from pyparcel.versioning.semver import is_prerelease
from pyparcel.workspace.package import Package


@dataclass(frozen=True, slots=True)
class RegistryWrite:
    """A write call received by :class:`MemoryRegistry`."""

    action: str
    name: str
    version: str | None = None
    tag: str | None = None


@dataclass
class MemoryRegistry:
    """Registry kept in a dict. Records every write call.

    Attributes:
        views: Published metadata by package name.
        writes: Every successful write, in call order.
        failures: Package name -> number of upcoming write calls that should fail.
        view_failures: Package name -> number of upcoming view calls that should fail.
    """

    views: dict[str, PackageView] = field(default_factory=dict)
    writes: list[RegistryWrite] = field(default_factory=list)
    failures: dict[str, int] = field(default_factory=dict)
    view_failures: dict[str, int] = field(default_factory=dict)
    view_calls: int = 0

    def add_view(self, name: str, *versions: str) -> None:
        """Register published versions; the last stable one becomes ``latest``."""
        view = self.views.setdefault(name, PackageView(name=name))
        view.versions.extend(versions)
        stable = [v for v in versions if not is_prerelease(v)]
        if stable:
            view.dist_tags["latest"] = stable[-1]

    def _maybe_fail(self, bucket: dict[str, int], name: str) -> None:
        remaining = bucket.get(name, 0)
        if remaining:
            bucket[name] = remaining - 1
            raise RegistryError("simulated failure", package=name)

    async def get_view(self, name: str) -> PackageView | None:
        self.view_calls += 1
        self._maybe_fail(self.view_failures, name)
        view = self.views.get(name)
        return view.model_copy(deep=True) if view else None

    async def publish(self, package: Package, version: str, *, tag: str) -> None:
        self._maybe_fail(self.failures, package.name)
        view = self.views.setdefault(package.name, PackageView(name=package.name))
        if version not in view.versions:
            view.versions.append(version)
        view.dist_tags[tag] = version
        self.writes.append(RegistryWrite("publish", package.name, version, tag))

    async def promote(self, package: Package, version: str, *, tag: str) -> None:
        self._maybe_fail(self.failures, package.name)
        view = self.views.setdefault(package.name, PackageView(name=package.name))
        if version not in view.versions:
            view.versions.append(version)
        view.dist_tags[tag] = version
        self.writes.append(RegistryWrite("promote", package.name, version, tag))

    async def grant_access(self, name: str, team: str) -> None:
        self._maybe_fail(self.failures, name)
        self.writes.append(RegistryWrite("grant-access", name, tag=team))
