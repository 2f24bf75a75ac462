"""Git operations."""

from pyparcel.git.directory import GitDirectory
from pyparcel.git.logs import GitFileLog, GitLog, PackageGitLogs
from pyparcel.git.repo import (
    GitRepository,
    run_git_command,
    run_git_command_async,
)

__all__ = [
    "GitDirectory",
    "GitFileLog",
    "GitLog",
    "GitRepository",
    "PackageGitLogs",
    "run_git_command",
    "run_git_command_async",
]
