"""Table rendering for CLI output."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from pyparcel.publish.types import Parcel


def _status(parcel: Parcel) -> str:
    state = parcel.state
    if state.errors:
        return "[red]failed[/red]"
    if state.published:
        return "[green]published[/green]"
    if state.is_selected_to_publish:
        return "pending"
    return "[dim]-[/dim]"


def summary_rows(parcels: Sequence[Parcel]) -> list[tuple[str, str, str, str, str]]:
    """Rows of the summary table: package, current, next, release type, status."""
    rows = []
    for parcel in parcels:
        state = parcel.state
        rows.append(
            (
                parcel.name,
                parcel.version,
                state.release_version or "-",
                state.release_type.value if state.release_type else "-",
                _status(parcel),
            )
        )
    return rows


def print_summary(console: Console, parcels: Sequence[Parcel], *, title: str) -> None:
    """Print one row per parcel."""
    if not parcels:
        console.print("[yellow]No packages to release[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Package", style="cyan")
    table.add_column("Current", style="dim")
    table.add_column("Next", style="green")
    table.add_column("Bump", style="magenta")
    table.add_column("Status")

    for row in summary_rows(parcels):
        table.add_row(*row)

    console.print(table)


def print_previews(console: Console, previews: Sequence[str]) -> None:
    """Print what a dry run would have done."""
    if not previews:
        return
    console.print("\n[bold]Would run:[/bold]")
    for line in previews:
        console.print(f"  {line}")
