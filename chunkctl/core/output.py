"""Output formatting for chunkctl.

Provides consistent output in JSON, table, and quiet modes using Rich.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

# =============================================================================
# Console Instances
# =============================================================================

console = Console()
err_console = Console(stderr=True)


# =============================================================================
# Output Format
# =============================================================================


class OutputFormat(Enum):
    """Output format options."""

    JSON = "json"
    TABLE = "table"

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        """Create from string value."""
        return cls(value.lower())


def format_size(size: int | None) -> str:
    """Render a byte count for humans (binary units)."""
    if size is None:
        return ""
    value = float(size)
    for unit in ["B", "KiB", "MiB", "GiB"]:
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


# =============================================================================
# Table Output
# =============================================================================


def print_table(
    rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    *,
    title: str | None = None,
    column_labels: dict[str, str] | None = None,
) -> None:
    """Print rows as a Rich table.

    Args:
        rows: Row dictionaries.
        columns: Column keys to display, in order.
        title: Optional table title.
        column_labels: Optional mapping of column keys to header labels.
    """
    if not rows:
        console.print("[dim]No results[/dim]")
        return

    labels = column_labels or {}
    table = Table(title=title, show_header=True, header_style="bold")
    for col in columns:
        table.add_column(labels.get(col, col.replace("_", " ").title()))

    for row in rows:
        table.add_row(*(_cell(row.get(col)) for col in columns))

    console.print(table)


def print_key_value(
    data: dict[str, Any],
    *,
    title: str | None = None,
    key_labels: dict[str, str] | None = None,
) -> None:
    """Print one record as aligned label/value lines."""
    if title:
        console.print(f"[bold]{title}[/bold]")

    labels = key_labels or {}
    display = {key: labels.get(key, key.replace("_", " ").title()) for key in data}
    width = max((len(label) for label in display.values()), default=0)

    for key, value in data.items():
        if value is None or value == "":
            rendered = "[dim]-[/dim]"
        elif isinstance(value, bool):
            rendered = "[green]Yes[/green]" if value else "[red]No[/red]"
        else:
            rendered = _cell(value)
        console.print(f"  {display[key]:<{width}}  {rendered}")


# =============================================================================
# JSON Output
# =============================================================================


def print_json(data: Any, *, indent: int = 2) -> None:
    """Print data as JSON on stdout."""
    print(json.dumps(data, indent=indent, default=str))


# =============================================================================
# Unified Output
# =============================================================================


def print_output(
    data: Any,
    *,
    format: OutputFormat = OutputFormat.TABLE,
    columns: Sequence[str] | None = None,
    column_labels: dict[str, str] | None = None,
    title: str | None = None,
    quiet: bool = False,
    id_field: str = "upload_id",
) -> None:
    """Print data in the specified format.

    Args:
        data: Data to print (dict, list of dicts, or scalar).
        format: Output format.
        columns: Columns for table format.
        column_labels: Labels for columns.
        title: Optional title.
        quiet: If True, only print identifiers.
        id_field: Field printed in quiet mode.
    """
    if quiet:
        items = data if isinstance(data, list) else [data]
        for item in items:
            if isinstance(item, dict):
                print(item.get(id_field) or item.get("path") or item.get("name") or "")
            else:
                print(item)
        return

    if format == OutputFormat.JSON:
        print_json(data)
        return

    if isinstance(data, list) and columns:
        print_table(data, columns, title=title, column_labels=column_labels)
    elif isinstance(data, dict):
        if columns:
            print_table([data], columns, title=title, column_labels=column_labels)
        else:
            print_key_value(data, title=title, key_labels=column_labels)
    else:
        print_json(data)


# =============================================================================
# Status Messages
# =============================================================================


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message to stderr."""
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    """Print success message."""
    console.print(f"[green]✓[/green] {message}")


def print_info(message: str) -> None:
    """Print info message."""
    console.print(f"[blue]Info:[/blue] {message}")


# =============================================================================
# Progress
# =============================================================================


def create_progress() -> Progress:
    """Create a byte-oriented progress display for file uploads.

    Tasks are expected to use byte counts for ``total`` and ``completed``.
    """
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(binary_units=True),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=err_console,
        transient=False,
    )
