"""
Clear command for CLI.
"""

import asyncio
import sys

import click
from rich.console import Console

from .common import open_store

console = Console()


@click.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def clear_command(yes: bool):
    """
    Delete all stored interactions.
    """
    if not yes and not click.confirm("Clear all stored AI interactions? This action cannot be undone."):
        return

    try:
        store = open_store()
        asyncio.run(store.clear())
        console.print("[green]AI Observer logs cleared[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
