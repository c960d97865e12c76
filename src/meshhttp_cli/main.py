"""Main CLI entry point for meshhttp."""

from __future__ import annotations

import sys
from typing import Annotated

import typer
from rich.console import Console

from meshhttp_cli import __version__
from meshhttp_cli.commands import device, files
from meshhttp_cli.commands.monitor import monitor
from meshhttp_cli.container import configure_logging

app = typer.Typer(
    name="meshhttp",
    help="meshhttp - talk to a mesh radio device over HTTP(S)",
    no_args_is_help=True,
    add_completion=False,
)

app.add_typer(device.app, name="device")
app.add_typer(files.app, name="files")
app.command("monitor")(monitor)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"meshhttp version: {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    ] = None,
) -> None:
    """
    meshhttp - command-line access to the HTTP transport of a mesh radio.

    Use 'meshhttp COMMAND --help' for help with specific commands.
    """
    configure_logging(log_level.upper() if log_level else None)


def cli_main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
