"""Centralized Rich Console management.

The CLI is the only place that renders anything; it goes through this module
so tests can swap the console for a recording one.
"""

from typing import Iterable, Sequence

from rich.console import Console
from rich.table import Table

_console: Console | None = None


def get_console() -> Console:
    """Get or create the global Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console | None) -> None:
    """Replace the global console (None resets to a fresh default on next use)."""
    global _console
    _console = console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def print_table(
    title: str, columns: Sequence[str], rows: Iterable[Sequence[object]]
) -> int:
    """Render rows as a Rich table and return how many rows were printed."""
    table = Table(title=title)
    for column in columns:
        table.add_column(column)

    count = 0
    for row in rows:
        table.add_row(*("" if value is None else str(value) for value in row))
        count += 1

    if count == 0:
        safe_print(f"{title}: (none)", style="dim")
    else:
        get_console().print(table)
    return count
