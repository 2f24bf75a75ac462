"""Test configuration loading."""

from pathlib import Path

import pytest

from pyparcel.config import CONFIG_FILENAME, find_config_file, load_config
from pyparcel.errors import ConfigurationError, WorkspaceNotFoundError


def test_find_config_in_parent(temp_dir: Path, sample_pyparcel_yaml: str):
    (temp_dir / CONFIG_FILENAME).write_text(sample_pyparcel_yaml)
    nested = temp_dir / "packages" / "pkg-a"
    nested.mkdir(parents=True)

    assert find_config_file(nested) == temp_dir / CONFIG_FILENAME


def test_find_config_missing(temp_dir: Path):
    with pytest.raises(WorkspaceNotFoundError):
        find_config_file(temp_dir)


def test_load_config(temp_dir: Path, sample_pyparcel_yaml: str):
    path = temp_dir / CONFIG_FILENAME
    path.write_text(sample_pyparcel_yaml)

    config = load_config(path)

    assert config.name == "test-workspace"
    assert config.packages == ["packages/*"]
    assert config.versioning.commit_message == "chore(release): {packages}"
    assert config.retry.attempts == 2


def test_load_invalid_yaml(temp_dir: Path):
    path = temp_dir / CONFIG_FILENAME
    path.write_text("name: [unclosed")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_config(path)


def test_load_non_mapping(temp_dir: Path):
    path = temp_dir / CONFIG_FILENAME
    path.write_text("- just\n- a list\n")

    with pytest.raises(ConfigurationError, match="must be a mapping"):
        load_config(path)


def test_load_validation_error_lists_fields(temp_dir: Path):
    path = temp_dir / CONFIG_FILENAME
    path.write_text("name: ws\npackages: ['*']\nretry:\n  attempts: 0\n")

    with pytest.raises(ConfigurationError) as exc_info:
        load_config(path)

    assert "retry.attempts" in exc_info.value.message
    assert exc_info.value.path == path


def test_load_missing_file(temp_dir: Path):
    with pytest.raises(ConfigurationError, match="Cannot read"):
        load_config(temp_dir / CONFIG_FILENAME)
