"""Commit and file history records."""

from __future__ import annotations

from pydantic import BaseModel, Field

FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"

# Format placeholders matching the GitLog fields, in order.
LOG_FORMAT = FIELD_SEPARATOR.join(["%H", "%P", "%an", "%ae", "%aI", "%s", "%b"]) + RECORD_SEPARATOR


class GitLog(BaseModel):
    """A single commit touching a package."""

    hash: str
    parents: list[str] = Field(default_factory=list)
    author_name: str = ""
    author_email: str = ""
    date: str = ""
    title: str
    body: str = ""

    @property
    def message(self) -> str:
        """Full commit message."""
        return f"{self.title}\n\n{self.body}".strip()


class GitFileLog(BaseModel):
    """A file changed within a package since a reference."""

    path: str
    relative_path: str
    status: str


class PackageGitLogs(BaseModel):
    """Commits and changed files since the last publish."""

    commits: list[GitLog] = Field(default_factory=list)
    files: list[GitFileLog] = Field(default_factory=list)


def parse_log_output(output: str) -> list[GitLog]:
    """Parse ``git log`` output produced with :data:`LOG_FORMAT`."""
    commits: list[GitLog] = []
    for record in output.split(RECORD_SEPARATOR):
        record = record.strip("\n")
        if not record:
            continue
        fields = record.split(FIELD_SEPARATOR)
        if len(fields) < 7:
            continue
        sha, parents, author, email, date, title, body = fields[:7]
        commits.append(
            GitLog(
                hash=sha,
                parents=parents.split(),
                author_name=author,
                author_email=email,
                date=date,
                title=title,
                body=body.strip(),
            )
        )
    return commits


def parse_name_status(output: str, package_prefix: str) -> list[GitFileLog]:
    """Parse ``git diff --name-status`` output into file records.

    Args:
        output: Raw command output.
        package_prefix: Package directory relative to the repository root, used to
            compute paths relative to the package.
    """
    prefix = package_prefix.rstrip("/") + "/" if package_prefix else ""
    files: list[GitFileLog] = []
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 2:
            continue
        status, path = parts[0], parts[-1]
        relative = path[len(prefix) :] if prefix and path.startswith(prefix) else path
        files.append(GitFileLog(path=path, relative_path=relative, status=status[:1]))
    return files
