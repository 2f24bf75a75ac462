"""Shared test fixtures for pyparcel tests."""

from __future__ import annotations

import tempfile
from collections.abc import Generator, Sequence
from datetime import date
from pathlib import Path

import pytest
from dotenv import load_dotenv

from pyparcel.errors import GitError
from pyparcel.git.directory import GitDirectory
from pyparcel.git.logs import GitLog, PackageGitLogs
from pyparcel.publish import MemoryBackupStore, ParcelGraph, PublishContext, build_parcel_graph
from pyparcel.registry import MemoryRegistry
from pyparcel.versioning.changelog import Changelog
from pyparcel.workspace import Workspace, WorkspaceProjectInfo

# Load .env from project root (doesn't override existing env vars)
load_dotenv(Path(__file__).parent.parent / ".env")


def make_commit(title: str, body: str = "", sha: str = "abc1234") -> GitLog:
    """A commit record as returned by the git collaborator."""
    return GitLog(hash=sha, title=title, body=body)


def make_logs(*titles: str) -> PackageGitLogs:
    return PackageGitLogs(
        commits=[make_commit(title, sha=f"{i:07d}") for i, title in enumerate(titles)]
    )


class FakeGitDirectory:
    """History handle returning canned logs."""

    def __init__(self, path: Path, histories: dict[str, PackageGitLogs | None]) -> None:
        self.path = path
        self._histories = histories
        self.since_refs: list[str | None] = []

    async def get_logs_async(self, since_ref: str | None) -> PackageGitLogs | None:
        self.since_refs.append(since_ref)
        return self._histories.get(self.path.name, PackageGitLogs())


class FakeRepository:
    """Repository double that records commits and tags."""

    def __init__(self, head: str = "a" * 40, clean: bool = True) -> None:
        self._head = head
        self.clean = clean
        self.staged: list[Path] = []
        self.committed: dict[Path, str] = {}
        self.commits: list[str] = []
        self.tags: list[str] = []
        self.tag_failures = 0

    def head(self) -> str:
        return self._head

    def current_branch(self) -> str:
        return "main"

    def is_clean(self) -> bool:
        return self.clean

    def has_staged_changes(self) -> bool:
        return bool(self.staged)

    def add(self, paths: Sequence[Path]) -> None:
        # Only content that differs from the last commit gets staged.
        for path in paths:
            if self.committed.get(path) != path.read_text():
                self.staged.append(path)

    def commit(self, message: str) -> str:
        for path in self.staged:
            self.committed[path] = path.read_text()
        self.commits.append(message)
        self.staged = []
        self._head = f"{len(self.commits):040d}"
        return self._head

    def tag_exists(self, name: str) -> bool:
        return name in self.tags

    def create_tag(self, name: str, message: str | None = None) -> None:
        if self.tag_failures:
            self.tag_failures -= 1
            raise GitError("cannot lock ref", command=f"git tag {name}")
        self.tags.append(name)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def sample_pyproject() -> str:
    """Sample pyproject.toml content."""
    return """\
[project]
name = "sample-pkg"
version = "1.0.0"
description = "A sample package"
dependencies = ["requests>=2.0.0"]

[project.optional-dependencies]
dev = ["pytest>=7.0.0"]
"""


@pytest.fixture
def sample_pyparcel_yaml() -> str:
    """Sample pyparcel.yaml content."""
    return """\
name: test-workspace
packages:
  - packages/*

versioning:
  tag_format: "{name}@{version}"
  commit_message: "chore(release): {packages}"

retry:
  attempts: 2
  base_delay: 0
  max_delay: 0

command_defaults:
  concurrency: 2
"""


@pytest.fixture
def workspace_dir(temp_dir: Path, sample_pyparcel_yaml: str) -> Path:
    """Create a workspace where pkg-c depends on pkg-b which depends on pkg-a."""
    (temp_dir / "pyparcel.yaml").write_text(sample_pyparcel_yaml)

    (temp_dir / "pyproject.toml").write_text("""\
[project]
name = "test-workspace"
version = "0.0.0"

[tool.uv.workspace]
members = ["packages/*"]
""")

    packages_dir = temp_dir / "packages"
    packages_dir.mkdir()

    pkg_a = packages_dir / "pkg-a"
    pkg_a.mkdir()
    (pkg_a / "pyproject.toml").write_text("""\
[project]
name = "pkg-a"
version = "1.0.0"
description = "Package A"
dependencies = []
""")

    pkg_b = packages_dir / "pkg-b"
    pkg_b.mkdir()
    (pkg_b / "pyproject.toml").write_text("""\
[project]
name = "pkg-b"
version = "2.0.0"
description = "Package B"
dependencies = ["pkg-a>=1.0.0,<2"]

[tool.uv.sources]
pkg-a = { workspace = true }
""")

    pkg_c = packages_dir / "pkg-c"
    pkg_c.mkdir()
    (pkg_c / "pyproject.toml").write_text("""\
[project]
name = "pkg-c"
version = "0.1.0"
description = "Package C"
dependencies = ["pkg-b"]

[tool.uv.sources]
pkg-b = { workspace = true }
""")

    return temp_dir


@pytest.fixture
def histories() -> dict[str, PackageGitLogs | None]:
    """Package directory name -> logs returned by the fake git collaborator."""
    return {}


@pytest.fixture
def registry() -> MemoryRegistry:
    """Registry where every workspace package is published at its current version."""
    registry = MemoryRegistry()
    registry.add_view("pkg-a", "0.9.0", "1.0.0")
    registry.add_view("pkg-b", "2.0.0")
    registry.add_view("pkg-c", "0.1.0")
    return registry


@pytest.fixture
def fake_repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def backup_store() -> MemoryBackupStore:
    return MemoryBackupStore()


@pytest.fixture
def publish_ctx(
    workspace_dir: Path,
    registry: MemoryRegistry,
    fake_repo: FakeRepository,
    histories: dict[str, PackageGitLogs | None],
    backup_store: MemoryBackupStore,
) -> PublishContext:
    """Pipeline collaborators over ``workspace_dir`` with in-memory doubles."""
    return PublishContext(
        workspace=Workspace.discover(workspace_dir),
        repo=fake_repo,  # type: ignore[arg-type]
        registry=registry,
        backup_store=backup_store,
        make_git_dir=lambda path: FakeGitDirectory(path, histories),  # type: ignore[arg-type,return-value]
        today=date(2024, 5, 1),
    )


def build_graph(
    dependencies: dict[str, list[str]],
    *,
    versions: dict[str, str] | None = None,
    root: Path = Path("/ws"),
    **kwargs: object,
) -> ParcelGraph:
    """Build a parcel graph from ``name -> dependency names`` without touching disk."""
    versions = versions or {}
    info = {
        f"{name}@{versions.get(name, '1.0.0')}": WorkspaceProjectInfo(
            location=root / name,
            workspace_dependencies=tuple(deps),
        )
        for name, deps in dependencies.items()
    }
    return build_parcel_graph(
        info,
        make_changelog=lambda path: Changelog(path / "CHANGELOG.md"),
        make_git_dir=lambda path: GitDirectory(root, path),
        **kwargs,  # type: ignore[arg-type]
    )
