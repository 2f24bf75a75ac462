"""Git command helpers and repository-wide operations."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from pyparcel.errors import GitError
from pyparcel.execution.runner import run_process

logger = logging.getLogger(__name__)


def _failure(cmd: Sequence[str], code: int, stderr: str) -> GitError:
    return GitError(stderr.strip() or f"git exited with {code}", command=" ".join(cmd))


def run_git_command(
    args: list[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run git and wait for it.

    Raises:
        GitError: If git is missing, or exits non-zero while ``check`` is set.
    """
    cmd = ["git", *args]
    try:
        result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        raise GitError("Git is not installed") from e
    if check and result.returncode != 0:
        raise _failure(cmd, result.returncode, result.stderr)
    return result


async def run_git_command_async(
    args: list[str],
    cwd: Path | None = None,
    *,
    check: bool = True,
) -> tuple[int, str, str]:
    """Run git without blocking the event loop.

    Returns:
        Tuple of (exit_code, stdout, stderr).

    Raises:
        GitError: If git exits non-zero while ``check`` is set.
    """
    cmd = ["git", *args]
    code, stdout, stderr, _ = await run_process(cmd, cwd or Path.cwd())
    if check and code != 0:
        raise _failure(cmd, code, stderr)
    return code, stdout, stderr


class GitRepository:
    """Repository-wide git operations used by the publish pipeline.

    Attributes:
        root: Repository (workspace) root directory.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def head(self) -> str:
        """Get the current commit SHA."""
        result = run_git_command(["rev-parse", "HEAD"], cwd=self.root)
        return result.stdout.strip()

    def current_branch(self) -> str:
        """Get the current branch name."""
        result = run_git_command(["rev-parse", "--abbrev-ref", "HEAD"], cwd=self.root)
        return result.stdout.strip()

    def is_clean(self) -> bool:
        """Check that the working tree has no uncommitted or untracked changes."""
        result = run_git_command(["status", "--porcelain"], cwd=self.root, check=False)
        return not result.stdout.strip()

    def has_staged_changes(self) -> bool:
        """Check whether anything is staged for commit."""
        result = run_git_command(["diff", "--cached", "--quiet"], cwd=self.root, check=False)
        return result.returncode != 0

    def add(self, paths: Sequence[Path]) -> None:
        """Stage the given paths."""
        if not paths:
            return
        run_git_command(["add", "--", *(str(p) for p in paths)], cwd=self.root)

    def commit(self, message: str) -> str:
        """Commit staged changes.

        Returns:
            SHA of the new commit.
        """
        run_git_command(["commit", "-m", message], cwd=self.root)
        return self.head()

    def tag_exists(self, name: str) -> bool:
        """Check whether a tag exists locally."""
        result = run_git_command(
            ["rev-parse", "--verify", "--quiet", f"refs/tags/{name}"],
            cwd=self.root,
            check=False,
        )
        return result.returncode == 0

    def create_tag(self, name: str, message: str | None = None) -> None:
        """Create a tag at HEAD, annotated when a message is given."""
        args = ["tag"]
        if message:
            args.extend(["-a", name, "-m", message])
        else:
            args.append(name)
        run_git_command(args, cwd=self.root)
