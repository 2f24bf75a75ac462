"""Publish command implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console

from pyparcel.cli.output.table import print_previews, print_summary
from pyparcel.commands.base import Command, CommandContext
from pyparcel.errors import PyParcelError
from pyparcel.publish import CommandOptions, Pipeline, PipelineResult, PublishContext
from pyparcel.publish.types import ActionType

if TYPE_CHECKING:
    from pyparcel.registry import Registry
    from pyparcel.workspace import Workspace


class PublishCommand(Command[PipelineResult]):
    """Run the publish pipeline for the action selected by the options."""

    def __init__(
        self,
        context: CommandContext,
        options: CommandOptions | None = None,
        *,
        publish_context: PublishContext | None = None,
    ) -> None:
        super().__init__(context)
        options = options or CommandOptions()
        if context.dry_run and not options.dry:
            options = options.model_copy(update={"dry": True})
        self.options = options
        self.publish_context = publish_context or PublishContext.from_workspace(self.workspace)

    def validate(self) -> list[str]:
        errors = []
        if self.options.tag.strip() == "":
            errors.append("Distribution tag must not be empty")
        if self.options.retry and self.options.dry:
            errors.append("--retry cannot resume a dry run, run it again without --dry")
        return errors

    async def execute(self) -> PipelineResult:
        return await Pipeline(self.publish_context).run(self.options)


async def publish(
    workspace: Workspace,
    options: CommandOptions | None = None,
    *,
    registry: Registry | None = None,
) -> PipelineResult:
    """Convenience function to run the publish pipeline."""
    options = options or CommandOptions()
    context = CommandContext(workspace=workspace, dry_run=options.dry)
    publish_context = PublishContext.from_workspace(workspace, registry=registry)
    cmd = PublishCommand(context, options, publish_context=publish_context)
    return await cmd.execute()


async def handle_publish_command(
    workspace: Workspace,
    options: CommandOptions,
    *,
    console: Console,
    error_console: Console,
) -> PipelineResult:
    """Handle the publish command from the CLI and print its outcome."""
    command = PublishCommand(CommandContext(workspace=workspace, dry_run=options.dry), options)
    problems = command.validate()
    if problems:
        for problem in problems:
            error_console.print(f"[red]Error:[/red] {problem}")
        raise typer.Exit(1)

    try:
        result = await command.execute()
    except PyParcelError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if result.dry:
        console.print("[yellow]Dry run - no changes made[/yellow]\n")

    if result.action is ActionType.LIST:
        print_summary(console, result.listed, title="Unpublished packages")
    elif result.selected:
        print_summary(console, result.selected, title="Releases")
    else:
        console.print("[yellow]No packages to release[/yellow]")

    if result.dry:
        print_previews(console, result.previews)

    if not result.success:
        for name, errors in result.errors.items():
            for error in errors:
                error_console.print(f"[red]{name}:[/red] {error}")
        raise typer.Exit(1)

    if result.published:
        console.print(f"\n[green]Released {len(result.published)} packages[/green]")
    return result
