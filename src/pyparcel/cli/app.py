"""pyparcel CLI application."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from pyparcel.errors import PyParcelError
from pyparcel.filters import parse_scope
from pyparcel.publish import CommandOptions
from pyparcel.workspace import Workspace


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from pyparcel import __version__

        print(f"pyparcel {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="pyparcel",
    help="Release coordinator for Python monorepos",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _app_callback(
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option("--version", "-V", help="Show version and exit", callback=version_callback),
    ] = False,
) -> None:
    """Release coordinator for Python monorepos."""
    pass


console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def parse_comma_list(values: list[str] | None) -> tuple[str, ...]:
    """Flatten repeated and comma-separated option values."""
    return tuple(pattern for value in values or () for pattern in parse_scope(value))


def get_workspace(path: Path | None = None) -> Workspace:
    """Load workspace from current directory or specified path."""
    try:
        workspace = Workspace.discover(path)
    except PyParcelError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    load_dotenv(workspace.root / ".env")
    return workspace


def flag_or_value(flag: bool, value: str | None) -> bool | str:
    return value if value else flag


@app.command("publish")
def publish_cmd(
    package: Annotated[
        list[str] | None,
        typer.Option("--package", "-p", help="Package names or globs whose changes count"),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-e", help="Packages never to release"),
    ] = None,
    prerelease: Annotated[
        bool,
        typer.Option("--prerelease", help="Release prerelease versions"),
    ] = False,
    prerelease_id: Annotated[
        str | None,
        typer.Option("--prerelease-id", help="Prerelease identifier (alpha, beta, rc)"),
    ] = None,
    tag: Annotated[
        str,
        typer.Option("--tag", help="Distribution tag"),
    ] = "latest",
    retry: Annotated[
        bool,
        typer.Option("--retry", help="Resume the last interrupted run"),
    ] = False,
    commit_message: Annotated[
        str | None,
        typer.Option("--commit-message", "-m", help="Release commit message ({packages})"),
    ] = None,
    exclude_deps: Annotated[
        bool,
        typer.Option("--exclude-deps", help="Do not release packages only because a dependency changed"),
    ] = False,
    skip_repo_checks: Annotated[
        bool,
        typer.Option("--skip-repo-checks", help="Do not require a clean working tree"),
    ] = False,
    dry: Annotated[
        bool,
        typer.Option("--dry", help="Show what would be released"),
    ] = False,
    list_unpublished: Annotated[
        bool,
        typer.Option("--list-unpublished", help="Only list packages with unpublished changes"),
    ] = False,
    promote: Annotated[
        bool,
        typer.Option("--promote", help="Finalize published prereleases"),
    ] = False,
    promote_tag: Annotated[
        str | None,
        typer.Option("--promote-tag", help="Promote to this distribution tag"),
    ] = None,
    backport: Annotated[
        bool,
        typer.Option("--backport", help="Publish fixes from a maintenance branch"),
    ] = False,
    backport_tag: Annotated[
        str | None,
        typer.Option("--backport-tag", help="Distribution tag of backports"),
    ] = None,
    grant_access: Annotated[
        bool,
        typer.Option("--grant-access", help="Grant publish.access_team access after publishing"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logs"),
    ] = False,
) -> None:
    """Version, commit and publish changed packages."""
    from pyparcel.commands import handle_publish_command

    configure_logging(verbose)
    workspace = get_workspace()

    options = CommandOptions(
        package_names=parse_comma_list(package),
        exclude=parse_comma_list(exclude),
        prerelease=flag_or_value(prerelease, prerelease_id),
        tag=tag,
        retry=retry,
        commit_message=commit_message,
        exclude_deps=exclude_deps,
        skip_repo_checks=skip_repo_checks,
        dry=dry,
        list_unpublished=list_unpublished,
        promote=flag_or_value(promote, promote_tag),
        backport=flag_or_value(backport, backport_tag),
        grant_access=grant_access,
    )

    asyncio.run(
        handle_publish_command(
            workspace,
            options,
            console=console,
            error_console=error_console,
        )
    )


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
