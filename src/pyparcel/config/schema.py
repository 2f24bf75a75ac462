"""Pydantic schema for pyparcel.yaml."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class VersioningConfig(BaseModel):
    """How versions, tags and release commits are written."""

    tag_format: str = "{name}@{version}"
    commit_message: str = "chore(release): publish {packages}"
    changelog_filename: str = "CHANGELOG.md"
    prerelease_identifier: str = "rc"

    @field_validator("tag_format")
    @classmethod
    def _tag_format_has_placeholders(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("tag_format must contain '{version}'")
        return value


class PublishConfig(BaseModel):
    """Registry endpoints used for reading views and uploading distributions."""

    index_url: str = "https://pypi.org/pypi"
    upload_url: str = "https://upload.pypi.org/legacy/"
    check_url: str | None = "https://pypi.org/simple/"
    token_env: str = "PYPARCEL_PUBLISH_TOKEN"
    access_team: str | None = None
    timeout: float = 30.0


class RetryConfig(BaseModel):
    """Backoff policy for calls at collaborator boundaries."""

    attempts: int = Field(default=3, ge=1, le=10)
    base_delay: float = Field(default=0.5, ge=0)
    max_delay: float = Field(default=8.0, ge=0)


class BackupConfig(BaseModel):
    """Where pipeline checkpoints are stored.

    When ``directory`` is unset, backups go to the system temp directory so they
    never show up as untracked files in the repository.
    """

    directory: Path | None = None


class CommandDefaults(BaseModel):
    """Defaults shared by commands."""

    concurrency: int = Field(default=4, ge=1, le=32)


class PyParcelConfig(BaseModel):
    """Root configuration model."""

    name: str
    packages: list[str] = Field(min_length=1)
    ignore: list[str] = Field(default_factory=list)
    versioning: VersioningConfig = Field(default_factory=VersioningConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    command_defaults: CommandDefaults = Field(default_factory=CommandDefaults)
