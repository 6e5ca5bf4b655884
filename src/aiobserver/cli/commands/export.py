"""
Export command for CLI.
"""

import asyncio
import sys
from pathlib import Path

import click
from rich.console import Console

from .common import open_store

console = Console()


@click.command("export")
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
def export_command(output: Path):
    """
    Export stored interactions.

    The format follows the OUTPUT extension: .json or .csv.
    """
    try:
        store = open_store()
        if not asyncio.run(store.export_to(output)):
            console.print(f"[yellow]Nothing written: unsupported extension or write failure for {output}[/yellow]")
            sys.exit(1)

        console.print(f"[green]✅ Exported {store.count} records to {output}[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
