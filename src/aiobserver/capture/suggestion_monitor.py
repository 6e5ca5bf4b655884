"""
Completion capture from editor signals.

The assistant exposes no acceptance event, so completions are inferred by
correlating two independent signals: the cursor settling somewhere (the
assistant may now show ghost text there) and a bulk insertion arriving at that
line shortly afterwards. The correlation is approximate by nature; false
positives and misses are expected.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..config import Config
from ..core.bounded import TTLMap
from ..core.event_bus import EventBus, Topic
from ..models import COMPLETION_MODEL_NAME, Interaction, InteractionKind, new_id, now_ms
from .editor import (
    ContentChange,
    Disposable,
    EditorEnvironment,
    Position,
    SelectionChangeEvent,
    TextChangeEvent,
    TextDocument,
)

logger = logging.getLogger(__name__)

COPILOT_EXTENSION_ID = "GitHub.copilot"

PendingKey = Tuple[str, int]


@dataclass
class HeuristicSettings:
    multiline_threshold: int = 20
    singleline_threshold: int = 50
    context_lines: int = 50
    pending_ttl_ms: int = 30_000
    pending_capacity: int = 1000

    @classmethod
    def from_config(cls, cfg: Config) -> "HeuristicSettings":
        return cls(
            multiline_threshold=cfg.multiline_threshold,
            singleline_threshold=cfg.singleline_threshold,
            context_lines=cfg.context_lines,
            pending_ttl_ms=cfg.pending_ttl_ms,
            pending_capacity=cfg.pending_capacity,
        )


@dataclass(frozen=True)
class PendingSuggestion:
    id: str
    start_time: int
    context_before: str
    position: Position


@dataclass(frozen=True)
class MonitorStats:
    running: bool
    pending_count: int


def is_likely_ai(text: str, settings: Optional[HeuristicSettings] = None) -> bool:
    """
    Classify an inserted span as assistant-originated.

    Multi-line inserts longer than the multi-line threshold, or single-line
    inserts longer than the single-line threshold, count as bulk insertion
    rather than typing.
    """
    settings = settings or HeuristicSettings()
    if "\n" in text:
        return len(text) > settings.multiline_threshold
    return len(text) > settings.singleline_threshold


class SuggestionHeuristicMonitor:
    """
    Watches editor signals and publishes inferred completion interactions.

    States per (document, line): idle, armed by a selection settle, resolved by
    a matching bulk insert. Armed entries expire after ``pending_ttl_ms`` and
    are all dropped when the active editor changes.
    """

    def __init__(
        self,
        event_bus: EventBus,
        environment: EditorEnvironment,
        settings: Optional[HeuristicSettings] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize suggestion monitor.

        Args:
            event_bus: Bus that receives completion interactions
            environment: Editor signal source
            settings: Heuristic thresholds (defaults if not provided)
            clock: Millisecond clock, injectable for tests
        """
        self.event_bus = event_bus
        self.environment = environment
        self.settings = settings or HeuristicSettings()
        self.clock = clock

        self.running = False
        self._disposables: List[Disposable] = []
        self.pending: TTLMap[PendingKey, PendingSuggestion] = TTLMap(
            ttl_ms=self.settings.pending_ttl_ms,
            capacity=self.settings.pending_capacity,
            timestamp_of=lambda pending: pending.start_time,
        )

    def start(self) -> None:
        """Subscribe to editor signals; no-op if running or the assistant is absent."""
        if self.running:
            logger.debug("Suggestion monitor already running, start() ignored")
            return

        if not self.environment.has_extension(COPILOT_EXTENSION_ID):
            self.environment.show_warning("GitHub Copilot not detected")
            logger.warning("Suggestion monitor not started: %s extension missing", COPILOT_EXTENSION_ID)
            return

        self._disposables = [
            self.environment.on_text_change(self.on_text_change),
            self.environment.on_selection_change(self.on_selection_change),
            self.environment.on_active_editor_change(self.on_editor_change),
        ]
        self.running = True
        logger.info("Suggestion monitor started")

    def stop(self) -> None:
        """Detach all signal subscriptions and forget pending suggestions."""
        if not self.running:
            return

        self.running = False
        for disposable in self._disposables:
            try:
                disposable.dispose()
            except Exception:
                logger.exception("Failed to dispose suggestion monitor listener")
        self._disposables = []
        self.pending.clear()
        logger.info("Suggestion monitor stopped")

    def on_selection_change(self, event: SelectionChangeEvent) -> None:
        """Arm a pending suggestion at the cursor and sweep stale ones."""
        if not self.running or event.document is None:
            return

        document = event.document
        position = event.active
        start_line = max(0, position.line - self.settings.context_lines)
        context_before = document.get_text(Position(start_line, 0), position)

        now = self.clock()
        pending = PendingSuggestion(
            id=new_id(),
            start_time=now,
            context_before=context_before,
            position=position,
        )
        self.pending.set((document.uri, position.line), pending)
        logger.debug("Tracking potential suggestion at %s:%d", document.uri, position.line)

        self._expire(now)

    def _expire(self, now: int) -> None:
        for _, stale in self.pending.sweep(now):
            logger.debug("Discarded stale suggestion %s", stale.id)

    def get_pending(self, uri: str, line: int) -> Optional[PendingSuggestion]:
        """Live pending suggestion at a location, if one has not expired."""
        self._expire(self.clock())
        return self.pending.get((uri, line))

    async def on_text_change(self, event: TextChangeEvent) -> None:
        """Publish an interaction for every bulk insert in the edit."""
        if not self.running:
            return

        document = event.document
        if document is None or document.is_untitled or not event.content_changes:
            return

        for change in event.content_changes:
            if not change.text or not is_likely_ai(change.text, self.settings):
                continue
            await self._resolve(document, change)

    async def _resolve(self, document: TextDocument, change: ContentChange) -> None:
        key = (document.uri, change.start.line)
        now = self.clock()
        self._expire(now)
        pending = self.pending.get(key)

        if pending is not None:
            interaction = self._build(document, change, pending.id, now, pending.context_before, now - pending.start_time)
        else:
            # No preceding cursor settle was seen; keep the edit without context.
            interaction = self._build(document, change, new_id(), now, "", 0)

        await self.event_bus.publish(Topic.INTERACTION, interaction)

        if pending is not None:
            self.pending.pop(key)
            logger.debug("Captured completion %s", interaction.id)
        else:
            logger.debug("Captured completion %s (no context)", interaction.id)

    def _build(
        self,
        document: TextDocument,
        change: ContentChange,
        interaction_id: str,
        timestamp: int,
        prompt: str,
        latency_ms: int,
    ) -> Interaction:
        return Interaction(
            id=interaction_id,
            timestamp=timestamp,
            kind=InteractionKind.COMPLETION,
            prompt=prompt,
            response=change.text,
            language=document.language_id,
            source_locator=self.environment.relative_path(document.uri),
            accepted=True,
            latency_ms=latency_ms,
            model_name=COMPLETION_MODEL_NAME,
            line_number=change.start.line,
            character_count=len(change.text),
        )

    def on_editor_change(self, document: Optional[TextDocument]) -> None:
        if not self.running:
            return
        self.pending.clear()
        logger.debug("Switched editor, cleared pending suggestions")

    def get_stats(self) -> MonitorStats:
        self._expire(self.clock())
        return MonitorStats(running=self.running, pending_count=len(self.pending))
