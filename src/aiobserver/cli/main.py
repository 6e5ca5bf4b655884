"""
CLI interface entry point.
"""

import logging

import click
from rich.logging import RichHandler

from .commands.clear import clear_command
from .commands.demo import add_test_data_command
from .commands.export import export_command
from .commands.interactions import list_command
from .commands.replay import replay_command
from .commands.stats import stats_command
from .commands.watch import watch_command
from ..config import config


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=config.log_level,
    show_default=True,
)
def cli(log_level: str):
    """
    AI Observer CLI

    Local-only capture and analytics of AI code-assistant usage.
    """
    configure_logging(log_level)


# Register commands
cli.add_command(stats_command)
cli.add_command(list_command)
cli.add_command(export_command)
cli.add_command(clear_command)
cli.add_command(add_test_data_command)
cli.add_command(watch_command)
cli.add_command(replay_command)


def main():
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
