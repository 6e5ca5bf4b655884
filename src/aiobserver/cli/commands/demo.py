"""
Test-data command for CLI.
"""

import asyncio
import random
import sys
from typing import List

import click
from rich.console import Console

from ...config import config
from ...core.event_bus import EventBus, Topic
from ...models import COMPLETION_MODEL_NAME, Interaction, InteractionKind, new_id, now_ms
from ...storage.interaction_store import InteractionStore

console = Console()

LANGUAGES = ["typescript", "python", "javascript", "go", "rust"]
EXTENSIONS = {"typescript": "ts", "python": "py", "javascript": "js", "go": "go", "rust": "rs"}


def sample_interactions(count: int = 5) -> List[Interaction]:
    """Synthetic completions spaced a minute apart, newest first."""
    now = now_ms()
    interactions = []
    for index in range(count):
        language = LANGUAGES[index % len(LANGUAGES)]
        latency = random.randint(100, 499)
        response = f"Sample response {index + 1}"
        interactions.append(
            Interaction(
                id=new_id(),
                timestamp=now - index * 60_000,
                kind=InteractionKind.COMPLETION,
                prompt=f"Sample prompt {index + 1}",
                response=response,
                language=language,
                source_locator=f"src/file-{index + 1}.{EXTENSIONS[language]}",
                accepted=index % 2 == 0,
                latency_ms=latency,
                model_name=COMPLETION_MODEL_NAME,
                line_number=index + 1,
                character_count=len(response),
            )
        )
    return interactions


async def _add_test_data(count: int) -> int:
    event_bus = EventBus()
    store = InteractionStore(config.data_dir, config.storage_limit)
    event_bus.subscribe(Topic.INTERACTION, store.append)
    try:
        for interaction in sample_interactions(count):
            await event_bus.publish(Topic.INTERACTION, interaction)
    finally:
        event_bus.clear()
    return store.count


@click.command("add-test-data")
@click.option("--count", "-n", default=5, show_default=True, help="Number of sample interactions")
def add_test_data_command(count: int):
    """
    Append sample interactions for trying out stats and exports.
    """
    try:
        total = asyncio.run(_add_test_data(count))
        console.print(f"[green]Added {count} test interactions ({total} stored)[/green]")

    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
