"""SPIFFS file commands.

- list: Show the static files stored on the device
- delete: Remove one static file
"""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

import typer
from rich.console import Console

from meshhttp_cli.container import create_connection
from meshhttp_cli.formatters import (
    format_error,
    format_json,
    format_success,
    format_table,
)

app = typer.Typer(
    name="files",
    help="Browse and delete files in the device SPIFFS",
    no_args_is_help=True,
)

console = Console()


def _print_listing(data: dict[str, Any], json_output: bool) -> None:
    if json_output:
        console.print(format_json(data))
        return

    console.print(
        format_table(data["data"]["files"], columns=["name", "size"], title="Files")
    )
    filesystem = data["data"]["filesystem"]
    console.print(
        f"[dim]used {filesystem.get('used')} / total {filesystem.get('total')}"
        f" (free {filesystem.get('free')})[/dim]"
    )


@app.command("list")
def list_files(
    address: Annotated[str, typer.Argument(help="Device host or IP")],
    tls: Annotated[bool, typer.Option("--tls", help="Use https")] = False,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output in JSON format")
    ] = False,
) -> None:
    """List files in the device SPIFFS."""

    async def _run() -> dict[str, Any] | None:
        async with create_connection(address, tls) as connection:
            listing = await connection.get_spiffs()
        return listing.model_dump() if listing else None

    data = asyncio.run(_run())
    if data is None:
        console.print(format_error(f"Could not list files on {address}"))
        raise typer.Exit(1)
    _print_listing(data, json_output)


@app.command()
def delete(
    address: Annotated[str, typer.Argument(help="Device host or IP")],
    file: Annotated[str, typer.Argument(help="File name, e.g. static/index.html")],
    tls: Annotated[bool, typer.Option("--tls", help="Use https")] = False,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output in JSON format")
    ] = False,
) -> None:
    """Delete a file from the device SPIFFS and show the remaining files."""

    async def _run() -> dict[str, Any] | None:
        async with create_connection(address, tls) as connection:
            listing = await connection.delete_spiffs(file)
        return listing.model_dump() if listing else None

    data = asyncio.run(_run())
    if data is None:
        console.print(format_error(f"Could not delete {file} on {address}"))
        raise typer.Exit(1)

    if not json_output:
        console.print(format_success(f"Deleted {file}"))
    _print_listing(data, json_output)
