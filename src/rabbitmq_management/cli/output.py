"""CLI output formatting using rich."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from rich.console import Console
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


STATE_COLORS = {
    "running": "green",
    "idle": "yellow",
    "flow": "yellow",
    "down": "red",
    "crashed": "red",
}


def print_error(message: str) -> None:
    err_console.print(f"[red]error:[/red] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def print_json(data: Any) -> None:
    console.print_json(data=data)


def colored_state(state: str | None) -> str:
    if not state:
        return ""
    color = STATE_COLORS.get(state, "white")
    return f"[{color}]{state}[/{color}]"


def print_table(
    columns: Sequence[str], rows: Iterable[Sequence[Any]], empty: str = "Nothing to show."
) -> None:
    """Print rows as a table, or a dim note when there are none."""
    rows = list(rows)
    if not rows:
        console.print(f"[dim]{empty}[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    for column in columns:
        table.add_column(column)

    for row in rows:
        table.add_row(*("" if cell is None else str(cell) for cell in row))

    console.print(table)
