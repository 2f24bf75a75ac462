"""Test package-scoped history queries."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from pyparcel.git.directory import EMPTY_TREE, GitDirectory
from pyparcel.git.logs import FIELD_SEPARATOR, RECORD_SEPARATOR

LOG = FIELD_SEPARATOR.join(["c" * 40, "", "Ada", "a@x", "2024-01-01", "fix: bug", ""]) + RECORD_SEPARATOR


def test_relative_path():
    directory = GitDirectory(Path("/repo"), Path("/repo/packages/core"))

    assert directory.relative_path == "packages/core"
    assert GitDirectory(Path("/repo"), Path("/elsewhere")).relative_path == "/elsewhere"


@pytest.mark.asyncio
async def test_logs_since_tag():
    directory = GitDirectory(Path("/repo"), Path("/repo/packages/core"))

    with patch("pyparcel.git.directory.run_git_command_async", new_callable=AsyncMock) as mock_git:
        mock_git.side_effect = [
            (0, "d" * 40 + "\n", ""),
            (0, LOG, ""),
            (0, "M\tpackages/core/a.py\n", ""),
        ]

        logs = await directory.get_logs_async("core@1.0.0")

    assert logs is not None
    assert [c.title for c in logs.commits] == ["fix: bug"]
    assert [f.relative_path for f in logs.files] == ["a.py"]
    calls = [c[0][0] for c in mock_git.call_args_list]
    assert calls[0][-1] == "core@1.0.0^{commit}"
    assert calls[1][-3:] == [f"{'d' * 40}..HEAD", "--", "packages/core"]
    assert calls[2][:4] == ["diff", "--name-status", "--relative", "d" * 40]


@pytest.mark.asyncio
async def test_logs_of_unpublished_package_cover_whole_history():
    directory = GitDirectory(Path("/repo"), Path("/repo/packages/core"))

    with patch("pyparcel.git.directory.run_git_command_async", new_callable=AsyncMock) as mock_git:
        mock_git.side_effect = [(0, LOG, ""), (0, "", "")]

        logs = await directory.get_logs_async(None)

    assert logs is not None
    assert len(logs.commits) == 1
    calls = [c[0][0] for c in mock_git.call_args_list]
    assert "HEAD" in calls[0]
    assert EMPTY_TREE in calls[1]


@pytest.mark.asyncio
async def test_unknown_ref_means_unknown_changes():
    directory = GitDirectory(Path("/repo"), Path("/repo/packages/core"))

    with patch("pyparcel.git.directory.run_git_command_async", new_callable=AsyncMock) as mock_git:
        mock_git.return_value = (1, "", "")

        assert await directory.get_logs_async("core@9.9.9") is None
        assert mock_git.call_count == 1
