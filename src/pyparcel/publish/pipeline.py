"""Resumable pipeline runner."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pyparcel.publish.backup import PublishBackupData, restore_backup
from pyparcel.publish.context import PublishContext
from pyparcel.publish.graph import ParcelGraph, prepare_parcels
from pyparcel.publish.options import CommandOptions
from pyparcel.publish.router import TASK_SEQUENCES, resolve_action, task_sequence
from pyparcel.publish.tasks import TASKS, Task, TaskRun
from pyparcel.publish.types import ActionType, Parcel

logger = logging.getLogger(__name__)

_unknown = {name for names in TASK_SEQUENCES.values() for name in names} - set(TASKS)
if _unknown:
    raise RuntimeError(f"Task sequences name unknown tasks: {sorted(_unknown)}")


@dataclass
class PipelineResult:
    """Outcome of one run.

    Attributes:
        action: Action that ran.
        graph: Parcels with their final state.
        dry: Whether mutating tasks were only previewed.
        resumed: Whether state was restored from a backup.
        completed: Tasks that ran.
        skipped: Tasks already done according to restored state.
        previews: What mutating tasks would have done in a dry run.
        listed: Parcels reported by the list action.
    """

    action: ActionType
    graph: ParcelGraph
    dry: bool = False
    resumed: bool = False
    completed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    previews: list[str] = field(default_factory=list)
    listed: list[Parcel] = field(default_factory=list)

    @property
    def selected(self) -> list[Parcel]:
        return [parcel for parcel in self.graph if parcel.state.is_selected_to_publish]

    @property
    def published(self) -> list[Parcel]:
        return [parcel for parcel in self.graph if parcel.state.published]

    @property
    def errors(self) -> dict[str, list[str]]:
        return {parcel.name: parcel.state.errors for parcel in self.graph if parcel.state.errors}

    @property
    def success(self) -> bool:
        return not self.errors


class Pipeline:
    """Runs the task sequence of the selected action.

    Tasks run one after another. After each task the whole state is
    checkpointed so that an interrupted run can be resumed with ``retry``.
    Dry runs leave the checkpoint alone. Errors restored from a checkpoint are
    kept unless the task that recorded them runs again.
    """

    def __init__(self, ctx: PublishContext) -> None:
        self.ctx = ctx

    def tasks_for(self, action: ActionType) -> list[Task]:
        return [TASKS[name] for name in task_sequence(action)]

    async def run(self, options: CommandOptions) -> PipelineResult:
        """Execute one run.

        Raises:
            ExclusiveOptionError: Before anything else happens.
            GraphBuildError: Before any task runs.
            BackupMismatchError: If ``retry`` cannot resume the saved state.
            CyclicDependencyError: Before propagation writes anything.
            UncleanRepositoryError: Before mutating tasks run.
        """
        action = resolve_action(options)
        tasks = self.tasks_for(action)
        store = self.ctx.backup_store_for(action)

        graph = await prepare_parcels(self.ctx)
        graph.topological_order()
        logger.info("Running %s over %d packages", action.value, len(graph))

        resumed = False
        if options.retry:
            data = store.load()
            if data is None:
                logger.warning("No backup to resume from, starting from scratch")
            else:
                restore_backup(graph, data, self.ctx.repo.head(), options)
                resumed = True

        result = PipelineResult(action=action, graph=graph, dry=options.dry, resumed=resumed)
        run = TaskRun(ctx=self.ctx, options=options, action=action, graph=graph, resumed=resumed)

        for task in tasks:
            if task.is_done(graph):
                logger.info("Skipping %s, already done", task.name)
                result.skipped.append(task.name)
                continue

            if options.dry and task.mutating:
                lines = task.preview(run) if task.preview else []
                logger.info("Dry run, not running %s", task.name)
                result.previews.extend(lines)
                continue

            logger.debug("Running task %s", task.name)
            for parcel in graph:
                parcel.state.discard_errors(task.name)
            await task.run(run)
            result.completed.append(task.name)
            if not options.dry:
                store.save(PublishBackupData.snapshot(graph, self.ctx.repo.head(), options))

        result.listed = run.listed
        if not options.dry and result.success:
            store.clear()
        elif not options.dry:
            logger.info("Kept the backup, run again with --retry to resume")
        return result
