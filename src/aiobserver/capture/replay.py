"""
Replay of recorded editor signals through the completion monitor.

Each line of a signal log is a JSON object with a ``signal`` field:

    {"signal": "selection", "uri": "file:///w/a.py", "language": "python",
     "text": "...", "line": 5, "character": 0, "time": 1700000000000}
    {"signal": "text", "uri": "file:///w/a.py", "language": "python",
     "changes": [{"line": 5, "character": 0, "text": "..."}], "time": 1700000002000}
    {"signal": "editor", "uri": "file:///w/b.py", "language": "python"}

``time`` (epoch milliseconds) drives the monitor's clock so recorded latencies
are reproduced; lines without it reuse the previous time.
"""

import json
import logging
from typing import Any, Iterable, Mapping, Optional

from ..core.event_bus import EventBus
from ..models import now_ms
from .editor import (
    ContentChange,
    LocalEditorHost,
    Position,
    SelectionChangeEvent,
    TextChangeEvent,
    TextDocument,
)
from .suggestion_monitor import COPILOT_EXTENSION_ID, HeuristicSettings, SuggestionHeuristicMonitor

logger = logging.getLogger(__name__)


class ReplayClock:
    def __init__(self, start: Optional[int] = None):
        self.current = start if start is not None else now_ms()

    def __call__(self) -> int:
        return self.current


def _document(record: Mapping[str, Any]) -> TextDocument:
    return TextDocument(
        uri=str(record.get("uri", "")),
        language_id=str(record.get("language", "plaintext")),
        text=str(record.get("text", "")),
        is_untitled=bool(record.get("untitled", False)),
    )


async def replay_signals(
    lines: Iterable[str],
    event_bus: EventBus,
    workspace_root: Optional[str] = None,
    settings: Optional[HeuristicSettings] = None,
) -> int:
    """
    Feed a signal log through a fresh monitor publishing to event_bus.

    Malformed lines are logged and skipped.

    Returns:
        Number of signals delivered
    """
    clock = ReplayClock()
    host = LocalEditorHost(extensions=[COPILOT_EXTENSION_ID], workspace_root=workspace_root)
    monitor = SuggestionHeuristicMonitor(event_bus, host, settings=settings, clock=clock)
    monitor.start()

    delivered = 0
    try:
        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                if not isinstance(record, dict):
                    raise ValueError("expected an object")
                if "time" in record:
                    clock.current = int(record["time"])

                signal = record.get("signal")
                if signal == "selection":
                    await host.fire_selection_change(
                        SelectionChangeEvent(
                            document=_document(record),
                            active=Position(int(record.get("line", 0)), int(record.get("character", 0))),
                        )
                    )
                elif signal == "text":
                    changes = [
                        ContentChange(
                            start=Position(int(change.get("line", 0)), int(change.get("character", 0))),
                            text=str(change.get("text", "")),
                        )
                        for change in record.get("changes", [])
                    ]
                    await host.fire_text_change(TextChangeEvent(document=_document(record), content_changes=changes))
                elif signal == "editor":
                    await host.fire_active_editor_change(_document(record) if record.get("uri") else None)
                else:
                    raise ValueError(f"unknown signal {signal!r}")
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping signal log line %d: %s", number, e)
                continue
            delivered += 1
    finally:
        monitor.stop()

    return delivered
