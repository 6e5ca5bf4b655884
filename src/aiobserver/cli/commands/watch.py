"""
Watch command for CLI.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console

from ...capture.workspace import resolve_chat_sessions_dir
from ...config import config
from ...service import ObserverService

console = Console()


async def _watch(chat_dir: Optional[Path], global_storage: Optional[Path], workspaces: Tuple[Path, ...]) -> None:
    def resolver() -> Optional[Path]:
        if chat_dir is not None:
            return chat_dir
        if global_storage is not None:
            return resolve_chat_sessions_dir(global_storage, workspaces)
        return config.chat_sessions_dir

    service = ObserverService(chat_dir_resolver=resolver)
    await service.start()
    console.print(f"[green]Watching for chat transcripts, storing in {service.store.path}[/green]")
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await service.shutdown()


@click.command("watch")
@click.option("--chat-dir", type=click.Path(file_okay=False, path_type=Path), help="Chat sessions directory")
@click.option(
    "--global-storage",
    type=click.Path(file_okay=False, path_type=Path),
    help="Editor global storage path used to locate the chat sessions directory",
)
@click.option(
    "--workspace",
    "-w",
    "workspaces",
    multiple=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Open workspace folder (repeatable)",
)
def watch_command(chat_dir: Optional[Path], global_storage: Optional[Path], workspaces: Tuple[Path, ...]):
    """
    Capture chat interactions from transcript files until interrupted.
    """
    if not config.enable_logging:
        console.print("[yellow]Capture is disabled (AI_OBSERVER_ENABLE_LOGGING)[/yellow]")
    try:
        asyncio.run(_watch(chat_dir, global_storage, workspaces))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
