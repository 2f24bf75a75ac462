"""Locating and loading pyparcel.yaml."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from pyparcel.config.schema import PyParcelConfig
from pyparcel.errors import ConfigurationError, WorkspaceNotFoundError

CONFIG_FILENAME = "pyparcel.yaml"


def find_config_file(start: Path | None = None) -> Path:
    """Walk up from ``start`` until a pyparcel.yaml is found.

    Args:
        start: Directory to start from. Defaults to the current directory.

    Returns:
        Path to the configuration file.

    Raises:
        WorkspaceNotFoundError: If no configuration file exists up to the filesystem root.
    """
    start = (start or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    raise WorkspaceNotFoundError(start)


def load_config(path: Path) -> PyParcelConfig:
    """Parse and validate a configuration file.

    Args:
        path: Path to pyparcel.yaml.

    Returns:
        Validated configuration.

    Raises:
        ConfigurationError: If the file cannot be read or does not validate.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration: {e}", path=path) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", path=path) from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration root must be a mapping", path=path)

    try:
        return PyParcelConfig.model_validate(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {errors}", path=path) from e
