"""PyPI-compatible registry backed by the JSON API and ``uv publish``."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import httpx
from packaging.version import InvalidVersion, Version

from pyparcel.config.schema import PublishConfig
from pyparcel.errors import RegistryError
from pyparcel.registry.base import PackageView
from pyparcel.uv.client import build_package, publish_distributions
from pyparcel.workspace.package import Package

logger = logging.getLogger(__name__)


def view_from_json(name: str, data: dict) -> PackageView:
    """Build a view from a ``/pypi/<name>/json`` document.

    PyPI has no distribution tags. ``latest`` is the version PyPI reports as
    current, ``next`` the newest prerelease above it.
    """
    versions = list(data.get("releases", {}))
    dist_tags: dict[str, str] = {}

    latest = data.get("info", {}).get("version")
    if latest:
        dist_tags["latest"] = latest

    parsed: list[tuple[Version, str]] = []
    for value in versions:
        try:
            parsed.append((Version(value), value))
        except InvalidVersion:
            logger.debug("Skipping invalid version %s of %s", value, name)
    prereleases = sorted(p for p in parsed if p[0].is_prerelease)
    if prereleases:
        newest, text = prereleases[-1]
        if latest is None or newest > Version(latest):
            dist_tags["next"] = text

    return PackageView(name=name, versions=versions, dist_tags=dist_tags)


class PyPIRegistry:
    """Registry talking to a PyPI-compatible index.

    Reads use the JSON API over httpx. Writes build the package with uv and upload
    it with ``uv publish``; the check URL makes uploads of existing files a no-op.

    Attributes:
        root: Workspace root, used as working directory for uv.
        config: Endpoints, credentials and timeouts.
    """

    def __init__(
        self,
        root: Path,
        config: PublishConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.root = root
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    async def get_view(self, name: str) -> PackageView | None:
        url = f"{self.config.index_url.rstrip('/')}/{name}/json"
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise RegistryError(f"request to {url} failed: {e}", package=name) from e

        if response.status_code == 404:
            return None
        if response.status_code >= 500:
            raise RegistryError(f"index returned {response.status_code}", package=name)
        if response.status_code >= 400:
            raise RegistryError(
                f"index returned {response.status_code}", package=name, transient=False
            )
        try:
            data = response.json()
        except ValueError as e:
            raise RegistryError("index returned invalid JSON", package=name) from e
        return view_from_json(name, data)

    async def publish(self, package: Package, version: str, *, tag: str) -> None:
        if tag != "latest":
            logger.debug("PyPI has no distribution tags, ignoring '%s' for %s", tag, package.name)
        token = os.environ.get(self.config.token_env)
        if not token:
            logger.warning("%s is not set, uv will look for other credentials", self.config.token_env)

        with tempfile.TemporaryDirectory(prefix="pyparcel-dist-") as tmp:
            files = await build_package(self.root, package.name, Path(tmp))
            logger.info("Uploading %s %s", package.name, version)
            await publish_distributions(
                self.root,
                package.name,
                files,
                publish_url=self.config.upload_url,
                check_url=self.config.check_url,
                token=token,
            )

    async def promote(self, package: Package, version: str, *, tag: str) -> None:
        # The finalized version is a new release on PyPI.
        await self.publish(package, version, tag=tag)

    async def grant_access(self, name: str, team: str) -> None:
        logger.warning(
            "The index has no API for access control, grant '%s' access to %s manually",
            team,
            name,
        )
