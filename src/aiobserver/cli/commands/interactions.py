"""
List command for CLI.
"""

import asyncio
import sys
from datetime import datetime

import click
from rich.console import Console
from rich.table import Table

from ...models import InteractionFilter
from .common import open_store

console = Console()


@click.command("list")
@click.option("--language", "-l", help="Only interactions in this language")
@click.option("--model", "-m", "model_name", help="Only interactions from this model")
@click.option("--limit", "-n", default=20, show_default=True, help="Most recent N interactions")
def list_command(language: str, model_name: str, limit: int):
    """
    List recent interactions.
    """
    try:
        store = open_store()
        interactions = asyncio.run(store.query(InteractionFilter(language=language, model_name=model_name)))
        recent = interactions[-limit:] if limit > 0 else interactions

        table = Table(title=f"Interactions ({len(recent)} of {len(interactions)})", show_header=True, header_style="bold")
        table.add_column("Time", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Language", style="green")
        table.add_column("Location")
        table.add_column("Latency", style="yellow")
        table.add_column("Chars", style="blue")

        for interaction in reversed(recent):
            table.add_row(
                datetime.fromtimestamp(interaction.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S"),
                interaction.kind.value,
                interaction.language,
                f"{interaction.source_locator}:{interaction.line_number}",
                f"{interaction.latency_ms} ms",
                str(interaction.character_count),
            )

        console.print(table)

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
