"""Tests for CLI application entry point using CliRunner."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import typer
from typer.testing import CliRunner

from pyparcel.cli.app import app, flag_or_value, get_workspace, parse_comma_list
from pyparcel.publish import CommandOptions

runner = CliRunner()


def test_version_flag():
    with patch("pyparcel.__version__", "1.2.3"):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "pyparcel 1.2.3" in result.stdout


def invoke_publish(*args: str) -> tuple[int, CommandOptions]:
    with (
        patch("pyparcel.cli.app.configure_logging"),
        patch("pyparcel.cli.app.get_workspace"),
        patch("pyparcel.commands.handle_publish_command", new_callable=AsyncMock) as mock_handle,
    ):
        result = runner.invoke(app, ["publish", *args])
        mock_handle.assert_called_once()
        return result.exit_code, mock_handle.call_args[0][1]


def test_publish_defaults():
    exit_code, options = invoke_publish()

    assert exit_code == 0
    assert options == CommandOptions()


def test_publish_options():
    exit_code, options = invoke_publish(
        "-p", "pkg-a,pkg-b", "-p", "pkg-c",
        "--exclude", "docs",
        "--prerelease-id", "beta",
        "--exclude-deps",
        "--dry",
        "-m", "release {packages}",
    )

    assert exit_code == 0
    assert options.package_names == ("pkg-a", "pkg-b", "pkg-c")
    assert options.exclude == ("docs",)
    assert options.prerelease == "beta"
    assert options.exclude_deps
    assert options.dry
    assert options.commit_message == "release {packages}"


def test_publish_action_flags():
    _, promote = invoke_publish("--promote", "--promote-tag", "stable")
    _, backport = invoke_publish("--backport")

    assert promote.promote == "stable"
    assert backport.backport is True
    assert backport.promote is False


def test_parse_comma_list():
    assert parse_comma_list(None) == ()
    assert parse_comma_list(["a, b", "", "c"]) == ("a", "b", "c")


def test_flag_or_value():
    assert flag_or_value(False, None) is False
    assert flag_or_value(True, None) is True
    assert flag_or_value(False, "rc") == "rc"


def test_get_workspace_missing(temp_dir: Path):
    with pytest.raises(typer.Exit) as exc_info:
        get_workspace(temp_dir)

    assert exc_info.value.exit_code == 1


def test_get_workspace(workspace_dir: Path):
    assert get_workspace(workspace_dir).root == workspace_dir
