"""History queries scoped to one package directory."""

from __future__ import annotations

import logging
from pathlib import Path

from pyparcel.git.logs import (
    LOG_FORMAT,
    PackageGitLogs,
    parse_log_output,
    parse_name_status,
)
from pyparcel.git.repo import run_git_command_async

logger = logging.getLogger(__name__)

# Object id of git's empty tree, used to diff a package against "nothing".
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


class GitDirectory:
    """Runs git commands for a single package directory.

    Attributes:
        root: Repository root.
        path: Absolute package directory.
    """

    def __init__(self, root: Path, path: Path) -> None:
        self.root = root
        self.path = path

    @property
    def relative_path(self) -> str:
        try:
            return self.path.relative_to(self.root).as_posix()
        except ValueError:
            return self.path.as_posix()

    async def resolve_ref(self, ref: str) -> str | None:
        """Resolve a reference to a commit SHA, or None if it does not exist."""
        code, stdout, _ = await run_git_command_async(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=self.root,
            check=False,
        )
        if code != 0:
            return None
        return stdout.strip() or None

    async def get_logs_async(self, since_ref: str | None) -> PackageGitLogs | None:
        """Collect commits and changed files since ``since_ref``.

        Args:
            since_ref: Last publish point. ``None`` means the package was never
                published and its whole history counts.

        Returns:
            The logs, or None when ``since_ref`` cannot be resolved, meaning the
            changes since the last publish are unknown.
        """
        pathspec = ["--", self.relative_path]

        if since_ref is None:
            base = EMPTY_TREE
            log_range: list[str] = ["HEAD"]
        else:
            resolved = await self.resolve_ref(since_ref)
            if resolved is None:
                logger.warning("Cannot resolve %s for %s", since_ref, self.relative_path)
                return None
            base = resolved
            log_range = [f"{resolved}..HEAD"]

        _, log_out, _ = await run_git_command_async(
            ["log", f"--format={LOG_FORMAT}", *log_range, *pathspec],
            cwd=self.root,
        )
        _, diff_out, _ = await run_git_command_async(
            ["diff", "--name-status", "--relative", base, "HEAD", *pathspec],
            cwd=self.root,
        )
        return PackageGitLogs(
            commits=parse_log_output(log_out),
            files=parse_name_status(diff_out, self.relative_path),
        )
