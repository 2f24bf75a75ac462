"""Registry collaborator contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from pyparcel.workspace.package import Package


class PackageView(BaseModel):
    """Published metadata of a package.

    Attributes:
        name: Package name.
        versions: Every version ever published.
        dist_tags: Distribution tag -> version (``latest``, ``next``...).
    """

    name: str
    versions: list[str] = Field(default_factory=list)
    dist_tags: dict[str, str] = Field(default_factory=dict)

    @property
    def latest(self) -> str | None:
        return self.dist_tags.get("latest")


@runtime_checkable
class Registry(Protocol):
    """Where packages are looked up and published.

    Writes raise ``RegistryError`` (possibly transient) or ``PublishError`` when
    rejected. They must be safe to retry: publishing a version that is already
    there is not an error.
    """

    async def get_view(self, name: str) -> PackageView | None:
        """Return published metadata, or None if the package was never published."""
        ...

    async def publish(self, package: Package, version: str, *, tag: str) -> None:
        """Publish the package as ``version`` under distribution tag ``tag``."""
        ...

    async def promote(self, package: Package, version: str, *, tag: str) -> None:
        """Make ``version`` the release pointed to by ``tag``."""
        ...

    async def grant_access(self, name: str, team: str) -> None:
        """Give ``team`` publish access to the package."""
        ...
