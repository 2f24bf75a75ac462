"""Checkpoints of pipeline state, used to resume interrupted runs."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from pyparcel.errors import BackupMismatchError
from pyparcel.publish.options import BackupableOptions, CommandOptions, backupable
from pyparcel.publish.types import PublishState

if TYPE_CHECKING:
    from pyparcel.publish.graph import ParcelGraph

logger = logging.getLogger(__name__)


class PublishBackupData(BaseModel):
    """Everything needed to resume a run.

    Attributes:
        head: Repository head when the checkpoint was taken.
        options: Options the run was started with.
        state: Package name -> accumulated state.
    """

    head: str
    options: BackupableOptions
    state: dict[str, PublishState] = Field(default_factory=dict)

    @classmethod
    def snapshot(cls, graph: ParcelGraph, head: str, options: CommandOptions) -> PublishBackupData:
        return cls(
            head=head,
            options=backupable(options),
            state={parcel.name: parcel.state.model_copy(deep=True) for parcel in graph},
        )

    def dumps(self) -> str:
        """Deterministic JSON. Only state fields that were set are written."""
        payload = {
            "head": self.head,
            "options": self.options.model_dump(mode="json"),
            "state": {
                name: state.model_dump(mode="json", exclude_unset=True)
                for name, state in self.state.items()
            },
        }
        return json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def loads(cls, text: str) -> PublishBackupData:
        return cls.model_validate_json(text)


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def default_backup_path(root: Path, action: str, directory: Path | None = None) -> Path:
    """Backup file for one workspace and action.

    Without a configured directory the file lives in the system temp directory,
    keyed by a hash of the workspace root.
    """
    if directory is not None:
        base = directory if directory.is_absolute() else root / directory
    else:
        digest = hashlib.sha256(str(root.resolve()).encode()).hexdigest()[:16]
        base = Path(tempfile.gettempdir()) / "pyparcel" / digest
    return base / f"{action}.json"


class BackupStore(ABC):
    """Where checkpoints go."""

    @abstractmethod
    def save(self, data: PublishBackupData) -> None:
        """Replace the previous checkpoint."""

    @abstractmethod
    def load(self) -> PublishBackupData | None:
        """The last checkpoint, or None if there is none."""

    @abstractmethod
    def clear(self) -> None:
        """Drop the checkpoint."""


class FileBackupStore(BackupStore):
    """Checkpoints in a JSON file, replaced atomically on every save."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def save(self, data: PublishBackupData) -> None:
        atomic_write_text(self.path, data.dumps())
        logger.debug("Saved backup to %s", self.path)

    def load(self) -> PublishBackupData | None:
        if not self.path.is_file():
            return None
        try:
            return PublishBackupData.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise BackupMismatchError(f"backup at {self.path} is unreadable ({e})") from e

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryBackupStore(BackupStore):
    """Checkpoints kept as serialized text in memory.

    Attributes:
        saves: Number of checkpoints taken.
    """

    def __init__(self) -> None:
        self.text: str | None = None
        self.saves = 0

    def save(self, data: PublishBackupData) -> None:
        self.text = data.dumps()
        self.saves += 1

    def load(self) -> PublishBackupData | None:
        return PublishBackupData.loads(self.text) if self.text is not None else None

    def clear(self) -> None:
        self.text = None


def restore_backup(
    graph: ParcelGraph,
    data: PublishBackupData,
    head: str,
    options: CommandOptions,
) -> None:
    """Merge saved state into freshly built parcels.

    Errors of the interrupted run are kept. The pipeline discards them only
    for tasks that run again.

    Raises:
        BackupMismatchError: If the repository moved or the options changed.
    """
    if data.head != head:
        raise BackupMismatchError(f"repository head is {head[:12]}, backup was taken at {data.head[:12]}")
    if data.options.model_dump() != backupable(options).model_dump():
        raise BackupMismatchError("options differ from the interrupted run")

    for name, state in data.state.items():
        parcel = graph.get(name)
        if parcel is None:
            logger.warning("Backup has state for unknown package %s, ignoring it", name)
            continue
        restored = state.model_copy(deep=True)
        for error in restored.errors:
            logger.warning("%s failed in the interrupted run: %s", name, error)
        parcel.state = restored
    logger.info("Resumed %d package states from backup", len(data.state))
