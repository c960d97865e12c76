"""Live monitor: connect to a device and print status changes and frames."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer
from rich.console import Console

from meshhttp.models import DeviceStatus
from meshhttp_cli.container import create_connection
from meshhttp_cli.formatters import (
    format_error,
    format_frame,
    format_status,
    format_warning,
)

console = Console()


class ConsoleSession:
    """Session that prints every inbound frame instead of decoding it."""

    def __init__(self, output: Console) -> None:
        self.output = output
        self.frames = 0

    async def configure(self) -> None:
        self.output.print("[dim]device answered, session configured[/dim]")

    async def on_frame_received(self, frame: bytes) -> None:
        self.frames += 1
        self.output.print(f"frame #{self.frames}: {format_frame(frame)}")


def monitor(
    address: Annotated[str, typer.Argument(help="Device host or IP, without scheme")],
    tls: Annotated[bool, typer.Option("--tls", help="Use https")] = False,
    receive_all: Annotated[
        bool, typer.Option("--all", help="Fetch all queued frames per request")
    ] = False,
    interval: Annotated[
        int, typer.Option("--interval", "-i", min=1, help="Poll interval in ms")
    ] = 5000,
    duration: Annotated[
        float,
        typer.Option("--duration", "-d", min=0, help="Seconds to run, 0 runs until Ctrl-C"),
    ] = 0,
    send: Annotated[
        list[str] | None,
        typer.Option("--send", "-s", help="Hex encoded frame to write after connecting"),
    ] = None,
) -> None:
    """Connect to a device and print status changes and inbound frames.

    Examples:
        meshhttp monitor 192.168.1.20
        meshhttp monitor meshtastic.local --all --interval 1000 --duration 60
    """
    try:
        frames = [bytes.fromhex(item) for item in send or []]
    except ValueError as e:
        console.print(format_error(f"Invalid hex frame: {e}"))
        raise typer.Exit(2) from e

    session = ConsoleSession(console)

    async def _run() -> None:
        async with create_connection(address, tls, session=session) as connection:
            connection.status_channel.subscribe(
                lambda status: console.print(f"status: {format_status(status)}")
            )
            await connection.connect(
                address,
                use_tls=tls,
                receive_all=receive_all,
                poll_interval_ms=interval,
            )
            if connection.status != DeviceStatus.CONNECTED:
                if frames:
                    console.print(format_warning("device not answering, frames not sent"))
            else:
                for frame in frames:
                    outcome = await connection.write_frame(frame)
                    if not outcome.ok:
                        console.print(format_error(f"write failed: {outcome.error}"))

            if duration:
                await asyncio.sleep(duration)
            else:
                await asyncio.Event().wait()

    asyncio.run(_run())
    console.print(f"[dim]{session.frames} frame(s) received[/dim]")
