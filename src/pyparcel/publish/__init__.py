"""Release coordination: parcel graph, release types, action routing and the pipeline."""

from pyparcel.publish.backup import (
    BackupStore,
    FileBackupStore,
    MemoryBackupStore,
    PublishBackupData,
    default_backup_path,
    restore_backup,
)
from pyparcel.publish.context import PublishContext
from pyparcel.publish.graph import ParcelGraph, build_parcel_graph, prepare_parcels
from pyparcel.publish.options import BackupableOptions, CommandOptions, backupable
from pyparcel.publish.pipeline import Pipeline, PipelineResult
from pyparcel.publish.resolver import (
    propagate_release_types,
    resolve_min_release_type,
    resolve_promotion_release_type,
    resolve_release_version,
)
from pyparcel.publish.router import resolve_action, task_sequence
from pyparcel.publish.tasks import TASKS, Task, TaskRun
from pyparcel.publish.types import ActionType, Parcel, PublishState

__all__ = [
    "TASKS",
    "ActionType",
    "BackupStore",
    "BackupableOptions",
    "CommandOptions",
    "FileBackupStore",
    "MemoryBackupStore",
    "Parcel",
    "ParcelGraph",
    "Pipeline",
    "PipelineResult",
    "PublishBackupData",
    "PublishContext",
    "PublishState",
    "Task",
    "TaskRun",
    "backupable",
    "build_parcel_graph",
    "default_backup_path",
    "prepare_parcels",
    "propagate_release_types",
    "resolve_action",
    "resolve_min_release_type",
    "resolve_promotion_release_type",
    "resolve_release_version",
    "restore_backup",
    "task_sequence",
]
