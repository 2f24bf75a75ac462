"""Test configuration schema."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from pyparcel.config import BackupConfig, PyParcelConfig, RetryConfig, VersioningConfig


def test_minimal_config():
    config = PyParcelConfig(name="ws", packages=["packages/*"])

    assert config.versioning.tag_format == "{name}@{version}"
    assert config.versioning.prerelease_identifier == "rc"
    assert config.publish.index_url == "https://pypi.org/pypi"
    assert config.retry.attempts == 3
    assert config.backup.directory is None
    assert config.command_defaults.concurrency == 4


def test_packages_required():
    with pytest.raises(ValidationError):
        PyParcelConfig(name="ws", packages=[])


def test_tag_format_needs_version():
    with pytest.raises(ValidationError, match="tag_format"):
        VersioningConfig(tag_format="{name}")


@pytest.mark.parametrize("attempts", [0, 11])
def test_retry_attempts_bounded(attempts):
    with pytest.raises(ValidationError):
        RetryConfig(attempts=attempts)


def test_backup_directory_is_path():
    assert BackupConfig(directory="tmp/backups").directory == Path("tmp/backups")


def test_nested_sections_from_dict():
    config = PyParcelConfig.model_validate(
        {
            "name": "ws",
            "packages": ["libs/*"],
            "publish": {"access_team": "core", "check_url": None},
            "retry": {"attempts": 5, "base_delay": 0},
        }
    )

    assert config.publish.access_team == "core"
    assert config.publish.check_url is None
    assert config.retry.attempts == 5
    assert config.retry.base_delay == 0
