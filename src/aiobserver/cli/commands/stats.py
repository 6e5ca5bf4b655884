"""
Stats command for CLI.
"""

import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .common import open_store

console = Console()


@click.command("stats")
@click.option("--format", "-f", type=click.Choice(["table", "json"]), default="table")
def stats_command(format: str):
    """
    Display interaction analytics.

    Shows totals, average latency, acceptance rate, top languages and the
    last 7 days of activity.
    """
    try:
        store = open_store()
        analytics = store.analytics()

        if format == "json":
            console.print_json(data=analytics.to_dict())
            return

        table = Table(title="AI Observer", show_header=True, header_style="bold magenta")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="yellow")
        table.add_row("Total Interactions", str(analytics.total_interactions))
        table.add_row("Average Latency", f"{analytics.average_latency} ms")
        table.add_row("Acceptance Rate", f"{analytics.acceptance_rate}%")
        console.print(table)

        if analytics.top_languages:
            languages = Table(title="Top Languages", show_header=True, header_style="bold")
            languages.add_column("Language", style="green")
            languages.add_column("Count", style="yellow")
            for item in analytics.top_languages:
                languages.add_row(item.language, str(item.count))
            console.print(languages)

        if analytics.interactions_over_time:
            trend = Table(title="Last 7 Days", show_header=True, header_style="bold")
            trend.add_column("Date", style="cyan")
            trend.add_column("Interactions", style="yellow")
            for item in analytics.interactions_over_time:
                trend.add_row(item.date, str(item.count))
            console.print(trend)
        elif analytics.total_interactions == 0:
            console.print(Panel("No interactions captured yet", style="dim"))

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
