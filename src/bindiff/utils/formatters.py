"""Rich output helpers shared by the CLI and the report renderer."""

from __future__ import annotations

import json
from typing import Any, Sequence

from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.table import Table

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_table(
    rows: Sequence[dict[str, Any]],
    title: str | None = None,
    columns: Sequence[str] | None = None,
    target: Console | None = None,
) -> None:
    """Render a list of dicts as a Rich table."""
    out = target or console
    if not rows:
        out.print("[dim]No results.[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=title, show_lines=False)
    for col in cols:
        table.add_column(col, overflow="fold")

    for row in rows:
        table.add_row(*(escape(str(row.get(c, ""))) for c in cols))

    out.print(table)


def print_json(data: Any) -> None:
    # soft_wrap keeps long values on one line so the output stays valid JSON.
    console.print(JSON(json.dumps(data, default=str), indent=2), soft_wrap=True)


def format_size(size: int) -> str:
    """Human-readable byte count, keeping the sign of negative deltas."""
    sign = "-" if size < 0 else ""
    value = float(abs(size))
    for unit in ("B", "KB", "MB"):
        if value < 1024 or unit == "MB":
            if unit == "B":
                return f"{sign}{int(value)} {unit}"
            return f"{sign}{value:.1f} {unit}"
        value /= 1024
    return f"{sign}{value:.1f} MB"


def print_success(msg: str) -> None:
    console.print(f"[bold green]{escape(msg)}[/bold green]")


def print_error(msg: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(msg)}")


def print_warning(msg: str) -> None:
    err_console.print(f"[bold yellow]Warning:[/bold yellow] {escape(msg)}")
