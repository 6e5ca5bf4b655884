"""
Replay command for CLI.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ...capture.replay import replay_signals
from ...capture.suggestion_monitor import HeuristicSettings
from ...config import config
from ...core.event_bus import EventBus, Topic
from ...storage.interaction_store import InteractionStore

console = Console()


async def _replay(signal_log: Path, workspace_root: Optional[str]):
    event_bus = EventBus()
    store = InteractionStore(config.data_dir, config.storage_limit)
    captured = []
    event_bus.subscribe(Topic.INTERACTION, store.append)
    event_bus.subscribe(Topic.INTERACTION, captured.append)
    try:
        with open(signal_log, "r", encoding="utf-8") as f:
            delivered = await replay_signals(
                f,
                event_bus,
                workspace_root=workspace_root,
                settings=HeuristicSettings.from_config(config),
            )
    finally:
        event_bus.clear()
    return delivered, len(captured)


@click.command("replay")
@click.argument("signal_log", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--workspace-root", help="Store file paths relative to this folder")
def replay_command(signal_log: Path, workspace_root: Optional[str]):
    """
    Replay a JSONL editor signal log through the completion heuristic.
    """
    try:
        delivered, captured = asyncio.run(_replay(signal_log, workspace_root))
        console.print(f"Replayed {delivered} signals, captured [green]{captured}[/green] completions")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
