"""Workspace configuration."""

from pyparcel.config.loader import CONFIG_FILENAME, find_config_file, load_config
from pyparcel.config.schema import (
    BackupConfig,
    CommandDefaults,
    PublishConfig,
    PyParcelConfig,
    RetryConfig,
    VersioningConfig,
)

__all__ = [
    "CONFIG_FILENAME",
    "BackupConfig",
    "CommandDefaults",
    "PublishConfig",
    "PyParcelConfig",
    "RetryConfig",
    "VersioningConfig",
    "find_config_file",
    "load_config",
]
