"""
Data model shared by capture, storage and the CLI.

Interactions are persisted with stable camelCase field names so the on-disk
document stays compatible with exports consumed by other tools.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

CHAT_LANGUAGE = "markdown"
CHAT_SOURCE_LOCATOR = "copilot-chat"
CHAT_MODEL_NAME = "copilot-chat"
COMPLETION_MODEL_NAME = "copilot"


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


def _int_or(value: Any, default: int) -> int:
    return default if value is None else int(value)


class InteractionKind(str, Enum):
    COMPLETION = "completion"
    CHAT = "chat"


@dataclass(frozen=True)
class Interaction:
    """One AI-assisted completion or chat turn."""

    id: str
    timestamp: int
    kind: InteractionKind
    prompt: str
    response: str
    language: str
    source_locator: str
    accepted: bool
    latency_ms: int
    model_name: str
    line_number: int = 0
    character_count: int = 0
    metadata: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the persisted field names."""
        data: Dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.kind.value,
            "prompt": self.prompt,
            "response": self.response,
            "language": self.language,
            "filePath": self.source_locator,
            "accepted": self.accepted,
            "latency": self.latency_ms,
            "modelName": self.model_name,
            "lineNumber": self.line_number,
            "characterCount": self.character_count,
        }
        if self.metadata is not None:
            data["metadata"] = dict(self.metadata)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Interaction":
        """
        Build an interaction from a persisted record.

        Optional numeric fields that are missing or null fall back to their
        defaults; ``accepted`` is true only for a JSON ``true``.

        Raises:
            KeyError: if ``id`` is missing
            ValueError: if ``type`` is not a known kind or a number is not finite
            OverflowError: if a number is infinite
        """
        response = str(data.get("response") or "")
        metadata = data.get("metadata")
        return cls(
            id=str(data["id"]),
            timestamp=int(data.get("timestamp") or 0),
            kind=InteractionKind(data.get("type", InteractionKind.COMPLETION.value)),
            prompt=str(data.get("prompt") or ""),
            response=response,
            language=data.get("language") or "",
            source_locator=data.get("filePath") or "",
            accepted=data.get("accepted") is True,
            latency_ms=_int_or(data.get("latency"), 0),
            model_name=data.get("modelName") or "",
            line_number=_int_or(data.get("lineNumber"), 0),
            character_count=_int_or(data.get("characterCount"), len(response)),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else None,
        )


@dataclass
class InteractionFilter:
    """Constraints for InteractionStore.query(); unset fields match everything."""

    start: Optional[int] = None
    end: Optional[int] = None
    language: Optional[str] = None
    model_name: Optional[str] = None

    def matches(self, interaction: Interaction) -> bool:
        if self.start is not None and interaction.timestamp < self.start:
            return False
        if self.end is not None and interaction.timestamp > self.end:
            return False
        if self.language is not None and interaction.language != self.language:
            return False
        if self.model_name is not None and interaction.model_name != self.model_name:
            return False
        return True


@dataclass
class LanguageCount:
    language: str
    count: int


@dataclass
class DailyCount:
    date: str
    count: int


@dataclass
class AnalyticsData:
    """Aggregates derived from the stored interactions."""

    total_interactions: int = 0
    average_latency: int = 0
    acceptance_rate: int = 0
    top_languages: List[LanguageCount] = field(default_factory=list)
    interactions_over_time: List[DailyCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalInteractions": self.total_interactions,
            "averageLatency": self.average_latency,
            "acceptanceRate": self.acceptance_rate,
            "topLanguages": [
                {"language": item.language, "count": item.count} for item in self.top_languages
            ],
            "interactionsOverTime": [
                {"date": item.date, "count": item.count} for item in self.interactions_over_time
            ],
        }
