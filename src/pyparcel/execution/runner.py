"""Subprocess execution with standard asynchronous capture."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


async def run_process(
    args: Sequence[str],
    cwd: Path,
    *,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> tuple[int, str, str, int]:
    """Run a program asynchronously and capture its output.

    Args:
        args: Program and its arguments.
        cwd: Working directory.
        env: Environment variables (merged with current env).
        timeout: Timeout in seconds.

    Returns:
        Tuple of (exit_code, stdout, stderr, duration_ms). A missing program or a
        timeout is reported as exit code -1 with the reason in stderr.
    """
    run_env = os.environ.copy()
    if env:
        run_env.update(env)

    start_time = time.monotonic()
    logger.debug("Running %s in %s", " ".join(args), cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=run_env,
        )
    except FileNotFoundError as e:
        duration_ms = int((time.monotonic() - start_time) * 1000)
        return -1, "", f"Executable not found: {e.filename or args[0]}", duration_ms

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        duration_ms = int((time.monotonic() - start_time) * 1000)
        return -1, "", f"Command timed out after {timeout}s", duration_ms

    duration_ms = int((time.monotonic() - start_time) * 1000)
    stdout = stdout_bytes.decode("utf-8", errors="replace")
    stderr = stderr_bytes.decode("utf-8", errors="replace")
    return process.returncode or 0, stdout, stderr, duration_ms
