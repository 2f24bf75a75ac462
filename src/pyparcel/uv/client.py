"""uv build / publish client."""

from __future__ import annotations

import logging
from pathlib import Path

from pyparcel.errors import PublishError, RegistryError
from pyparcel.execution.runner import run_process

logger = logging.getLogger(__name__)


async def run_uv_async(
    args: list[str],
    cwd: Path,
    *,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> tuple[int, str, str]:
    """Run a uv command asynchronously.

    Args:
        args: uv arguments (without 'uv').
        cwd: Working directory.
        env: Extra environment variables.
        timeout: Timeout in seconds.

    Returns:
        Tuple of (exit_code, stdout, stderr).
    """
    code, stdout, stderr, duration_ms = await run_process(
        ["uv", *args], cwd, env=env, timeout=timeout
    )
    logger.debug("uv %s exited with %d after %dms", " ".join(args), code, duration_ms)
    return code, stdout, stderr


async def build_package(root: Path, package: str, out_dir: Path) -> list[Path]:
    """Build sdist and wheel of one workspace member.

    Returns:
        Paths of the built distributions.

    Raises:
        PublishError: If the build fails.
    """
    code, _, stderr = await run_uv_async(
        ["build", "--package", package, "--out-dir", str(out_dir)],
        cwd=root,
    )
    if code != 0:
        raise PublishError(stderr.strip() or f"uv build exited with {code}", package=package)
    dists = sorted(out_dir.iterdir())
    if not dists:
        raise PublishError("uv build produced no distributions", package=package)
    return dists


async def publish_distributions(
    root: Path,
    package: str,
    files: list[Path],
    *,
    publish_url: str,
    check_url: str | None,
    token: str | None,
) -> None:
    """Upload distributions with ``uv publish``.

    ``check_url`` makes uv skip files that already exist on the index, so a retry
    after a partial upload is safe.

    Raises:
        RegistryError: If the upload fails.
    """
    args = ["publish", "--publish-url", publish_url]
    if check_url:
        args.extend(["--check-url", check_url])
    env = {"UV_PUBLISH_TOKEN": token} if token else None

    code, _, stderr = await run_uv_async([*args, *(str(f) for f in files)], cwd=root, env=env)
    if code != 0:
        raise RegistryError(stderr.strip() or f"uv publish exited with {code}", package=package)
