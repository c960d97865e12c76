"""Device administration commands.

This module provides CLI commands for the device web API:
- stats: Airtime, memory, power and radio statistics
- networks: WiFi access points visible to the device
- blink: Blink the device LED
- restart: Reboot the device
"""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console

from meshhttp.models import DeviceStatus
from meshhttp_cli.container import create_connection
from meshhttp_cli.formatters import (
    format_error,
    format_json,
    format_success,
    format_table,
    format_tree,
)

app = typer.Typer(
    name="device",
    help="Query and control a device through its web API",
    no_args_is_help=True,
)

console = Console()

AddressArg = Annotated[str, typer.Argument(help="Device host or IP, without scheme")]
TlsOpt = Annotated[bool, typer.Option("--tls", help="Use https")]
JsonOpt = Annotated[bool, typer.Option("--json", "-j", help="Output in JSON format")]


@app.command()
def stats(address: AddressArg, tls: TlsOpt = False, json_output: JsonOpt = False) -> None:
    """Show device statistics.

    Examples:
        meshhttp device stats 192.168.1.20
        meshhttp device stats meshtastic.local --json
    """

    async def _run() -> dict | None:
        async with create_connection(address, tls) as connection:
            report = await connection.get_statistics()
        return report.model_dump(exclude_none=True) if report else None

    data = asyncio.run(_run())
    if data is None:
        console.print(format_error(f"Could not read statistics from {address}"))
        raise typer.Exit(1)

    if json_output:
        console.print(format_json(data))
    else:
        console.print(format_tree(data.get("data", {}), label=f"Statistics {address}"))


@app.command()
def networks(
    address: AddressArg, tls: TlsOpt = False, json_output: JsonOpt = False
) -> None:
    """Scan for WiFi networks visible to the device."""

    async def _run() -> dict | None:
        async with create_connection(address, tls) as connection:
            scan = await connection.get_networks()
        return scan.model_dump() if scan else None

    data = asyncio.run(_run())
    if data is None:
        console.print(format_error(f"Could not scan networks on {address}"))
        raise typer.Exit(1)

    if json_output:
        console.print(format_json(data))
    else:
        rows = data["data"]["networks"]
        console.print(format_table(rows, columns=["ssid", "rssi"], title="Networks"))


@app.command()
def blink(address: AddressArg, tls: TlsOpt = False) -> None:
    """Blink the device LED."""

    async def _run() -> bool:
        async with create_connection(address, tls) as connection:
            return await connection.blink_led()

    if not asyncio.run(_run()):
        console.print(format_error(f"Blink request to {address} failed"))
        raise typer.Exit(1)
    console.print(format_success("LED blink requested"))


@app.command()
def restart(
    address: AddressArg,
    tls: TlsOpt = False,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")
    ] = False,
) -> None:
    """Reboot the device."""
    if not yes:
        typer.confirm(f"Restart device at {address}?", abort=True)

    async def _run() -> bool:
        async with create_connection(address, tls) as connection:
            await connection.restart_device()
            return connection.status == DeviceStatus.RESTARTING

    if not asyncio.run(_run()):
        console.print(format_error(f"Restart request to {address} failed"))
        raise typer.Exit(1)
    console.print(format_success("Device restarting"))
