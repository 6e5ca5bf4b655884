"""
Wires the event bus, storage and both capture monitors together.

This is the only place that knows about every component; the components
themselves only share the event bus.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .capture.editor import EditorEnvironment
from .capture.suggestion_monitor import HeuristicSettings, SuggestionHeuristicMonitor
from .capture.transcript_ingestor import TranscriptIngestor
from .config import Config, config
from .core.event_bus import EventBus, Topic
from .models import Interaction
from .storage.interaction_store import InteractionStore

logger = logging.getLogger(__name__)

ChatDirResolver = Callable[[], Optional[Path]]


class ObserverService:
    """
    Owns component lifecycles and the capture on/off switch.

    While capture is disabled both monitors are stopped and any interaction
    that still reaches the bus is dropped instead of persisted.
    """

    def __init__(
        self,
        cfg: Optional[Config] = None,
        event_bus: Optional[EventBus] = None,
        store: Optional[InteractionStore] = None,
        environment: Optional[EditorEnvironment] = None,
        chat_dir_resolver: Optional[ChatDirResolver] = None,
        retry_interval_s: float = 10.0,
    ):
        """
        Initialize the service.

        Args:
            cfg: Configuration (global config if not provided)
            event_bus: Shared bus (creates if not provided)
            store: Interaction store (creates under cfg.data_dir if not provided)
            environment: Editor signal source; completion capture is off without one
            chat_dir_resolver: Returns the transcript directory or None if not found yet
            retry_interval_s: Delay between attempts to locate the transcript directory
        """
        self.config = cfg or config
        self.event_bus = event_bus or EventBus()
        self.store = store or InteractionStore(self.config.data_dir, self.config.storage_limit)
        self.chat_dir_resolver = chat_dir_resolver or (lambda: self.config.chat_sessions_dir)
        self.retry_interval_s = retry_interval_s

        self.suggestion_monitor: Optional[SuggestionHeuristicMonitor] = None
        if environment is not None:
            self.suggestion_monitor = SuggestionHeuristicMonitor(
                self.event_bus,
                environment,
                settings=HeuristicSettings.from_config(self.config),
            )

        self.ingestor: Optional[TranscriptIngestor] = None
        self.logging_enabled = self.config.enable_logging
        self._retry_task: Optional[asyncio.Task] = None
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.event_bus.subscribe(Topic.INTERACTION, self._on_interaction)
        await self.store.ensure_loaded()
        await self.apply_logging_state(self.logging_enabled)
        logger.info("AI Observer started (%d stored interactions)", self.store.count)

    async def _on_interaction(self, interaction: Interaction) -> None:
        if not self.logging_enabled:
            logger.debug("Capture disabled, skipping interaction %s", interaction.id)
            return
        await self.store.append(interaction)

    async def apply_logging_state(self, enabled: bool) -> None:
        """Start or stop both monitors to match the capture switch."""
        self.logging_enabled = enabled

        if self.suggestion_monitor is not None:
            if enabled:
                self.suggestion_monitor.start()
            else:
                self.suggestion_monitor.stop()

        if not enabled:
            self._cancel_retry()

        ingestor = await self._ensure_ingestor()
        if ingestor is not None:
            if enabled:
                await ingestor.start()
            else:
                ingestor.stop()
        elif enabled:
            self._schedule_retry()

    async def _ensure_ingestor(self) -> Optional[TranscriptIngestor]:
        if self.ingestor is not None:
            return self.ingestor

        try:
            chat_dir = await asyncio.to_thread(self.chat_dir_resolver)
        except Exception:
            logger.exception("Failed to resolve chat transcripts directory")
            chat_dir = None

        if chat_dir is None:
            logger.warning("Could not locate chat transcripts directory")
            return None

        self.ingestor = TranscriptIngestor.from_config(chat_dir, self.event_bus, self.config)
        return self.ingestor

    def _schedule_retry(self) -> None:
        if self._retry_task is not None or self.ingestor is not None or not self.logging_enabled:
            return
        self._retry_task = asyncio.get_running_loop().create_task(self._retry_ingestor())

    async def _retry_ingestor(self) -> None:
        while self.logging_enabled and self.ingestor is None:
            await asyncio.sleep(self.retry_interval_s)
            if not self.logging_enabled:
                break
            ingestor = await self._ensure_ingestor()
            if ingestor is not None:
                await ingestor.start()
        self._retry_task = None

    def _cancel_retry(self) -> None:
        if self._retry_task is not None:
            self._retry_task.cancel()
            self._retry_task = None

    def set_storage_limit(self, limit: int) -> None:
        self.store.set_cap(limit)

    async def shutdown(self) -> None:
        """Stop all capture and detach from the bus."""
        self._cancel_retry()
        if self.suggestion_monitor is not None:
            self.suggestion_monitor.stop()
        if self.ingestor is not None:
            self.ingestor.stop()
        self.event_bus.unsubscribe(Topic.INTERACTION, self._on_interaction)
        self._started = False
        logger.info("AI Observer stopped")

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "logging_enabled": self.logging_enabled,
            "stored_interactions": self.store.count,
        }
        if self.suggestion_monitor is not None:
            monitor = self.suggestion_monitor.get_stats()
            stats["completion_monitor"] = {"running": monitor.running, "pending": monitor.pending_count}
        if self.ingestor is not None:
            ingestor = self.ingestor.get_stats()
            stats["chat_monitor"] = {"running": ingestor.running, "processed": ingestor.processed_count}
        return stats
