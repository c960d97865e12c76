"""Output formatters for the meshhttp CLI.

Provides two output formats:
- JSON: Machine-readable format for scripting
- Table/Tree: Human-readable format (default)

Color is disabled automatically for piped output.
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from meshhttp.models import DeviceStatus


def _should_use_color() -> bool:
    """Determine if color output should be used.

    Color is disabled when NO_COLOR is set, TERM is "dumb" or stdout is not
    a TTY.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return sys.stdout.isatty()


def _get_console(force_color: bool | None = None) -> Console:
    if force_color is None:
        force_color = _should_use_color()

    return Console(
        force_terminal=force_color,
        no_color=not force_color,
        legacy_windows=False,
    )


def format_json(data: Any, pretty: bool = True) -> str:
    """Format data as JSON.

    Args:
        data: Data to format
        pretty: Whether to pretty-print (default: True)

    Returns:
        JSON-formatted string
    """
    if pretty:
        return json.dumps(data, indent=2, sort_keys=False, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False)


def format_table(
    data: list[dict[str, Any]],
    columns: list[str] | None = None,
    title: str | None = None,
    force_color: bool | None = None,
) -> str:
    """Format rows as a rich table.

    Args:
        data: List of dictionaries to display as rows
        columns: Optional list of column keys to display (default: all keys)
        title: Optional table title
        force_color: Force color output (None for auto-detect)

    Returns:
        Formatted table string
    """
    if not data:
        return "[dim]No data to display[/dim]"

    if columns is None:
        columns = list(data[0].keys())

    table = Table(title=title, show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title(), overflow="fold")

    for row in data:
        table.add_row(*(_format_value(row.get(col, "")) for col in columns))

    console = _get_console(force_color)
    with console.capture() as capture:
        console.print(table)

    return capture.get()


def format_tree(
    data: dict[str, Any],
    label: str = "Root",
    force_color: bool | None = None,
) -> str:
    """Format nested dictionaries as a rich tree."""
    tree = Tree(f"[bold]{label}[/bold]")
    _build_tree(tree, data)

    console = _get_console(force_color)
    with console.capture() as capture:
        console.print(tree)

    return capture.get()


def _build_tree(tree: Tree, data: dict[str, Any]) -> None:
    for key, value in data.items():
        if isinstance(value, dict):
            _build_tree(tree.add(f"[cyan]{key}[/cyan]"), value)
        elif isinstance(value, list) and value and isinstance(value[0], dict):
            branch = tree.add(f"[cyan]{key}[/cyan] ({len(value)})")
            for index, item in enumerate(value):
                _build_tree(branch.add(f"[dim]#{index}[/dim]"), item)
        else:
            tree.add(f"[cyan]{key}[/cyan]: {_format_value(value)}")


def _format_value(value: Any) -> str:
    if value is None:
        return "[dim]N/A[/dim]"
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, list):
        return ", ".join(str(item) for item in value) or "[dim]empty[/dim]"
    return str(value)


def format_status(status: DeviceStatus) -> str:
    """Format a device status with color markup."""
    name = status.name
    if status == DeviceStatus.CONNECTED:
        return f"[green]{name}[/green]"
    if status in (DeviceStatus.CONNECTING, DeviceStatus.RESTARTING):
        return f"[cyan]{name}[/cyan]"
    if status == DeviceStatus.RECONNECTING:
        return f"[yellow]{name}[/yellow]"
    return f"[red]{name}[/red]"


def format_frame(frame: bytes, max_bytes: int = 32) -> str:
    """Format an inbound frame as its length and leading bytes in hex."""
    preview = frame[:max_bytes].hex(" ")
    if len(frame) > max_bytes:
        preview += " …"
    return f"[bold]{len(frame)}[/bold] bytes  [dim]{preview}[/dim]"


def format_success(message: str) -> str:
    return f"[green]✓[/green] {message}"


def format_error(message: str) -> str:
    return f"[red]✗[/red] {message}"


def format_warning(message: str) -> str:
    return f"[yellow]⚠[/yellow] {message}"
