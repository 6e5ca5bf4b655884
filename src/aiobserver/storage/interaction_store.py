"""
JSON-file storage for captured interactions.

The whole log lives in one human-readable JSON array that is rewritten on every
change. An in-memory mirror serves queries and analytics so reads never touch
the disk.
"""

import asyncio
import json
import logging
import math
import os
import tempfile
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Set, Union

from ..models import (
    AnalyticsData,
    DailyCount,
    Interaction,
    InteractionFilter,
    LanguageCount,
)

logger = logging.getLogger(__name__)

STORAGE_FILENAME = "interactions.json"
CSV_HEADER = "ID,Timestamp,Type,Language,Accepted,Latency,Model"
TOP_LANGUAGES = 5
TREND_DAYS = 7


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _write_atomic(path: Path, data: str) -> None:
    """Write data to a sibling temp file, then rename it over path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise


class InteractionStore:
    """
    Bounded, query-able log of interactions.

    Holds at most ``max_interactions`` records; the oldest appended records are
    evicted first. Disk failures are logged and never raised: the in-memory
    list stays authoritative for the running process.
    """

    def __init__(self, data_dir: Union[str, Path], max_interactions: int = 10000):
        """
        Initialize interaction store.

        Args:
            data_dir: Directory holding interactions.json
            max_interactions: Cap on retained interactions
        """
        if max_interactions <= 0:
            raise ValueError("max_interactions must be positive")

        self.path = Path(data_dir) / STORAGE_FILENAME
        self.max_interactions = max_interactions
        self._interactions: List[Interaction] = []
        self._ids: Set[str] = set()
        self._load_task: Optional["asyncio.Future[None]"] = None

        # Start loading right away when constructed inside a running loop;
        # otherwise the first ensure_loaded() call starts it.
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._load_task = loop.create_task(self.load())

    async def ensure_loaded(self) -> None:
        """Wait for the initial load; every mutating operation goes through here."""
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self.load())
        await self._load_task

    async def load(self) -> None:
        """
        Load interactions from disk into memory.

        A missing file starts an empty log. Unreadable or malformed content is
        logged and also yields an empty log.
        """
        try:
            raw = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
            parsed = json.loads(raw)
        except FileNotFoundError:
            self._replace([])
            logger.info("No existing storage at %s, starting fresh", self.path)
            return
        except (OSError, ValueError) as e:
            self._replace([])
            logger.error("Failed to load interactions from %s: %s", self.path, e)
            return

        if not isinstance(parsed, list):
            self._replace([])
            logger.error("Storage file malformed: expected an array of interactions")
            return

        interactions = []
        for entry in parsed:
            if not isinstance(entry, dict):
                logger.warning("Skipping non-object entry in %s", self.path)
                continue
            try:
                interactions.append(Interaction.from_dict(entry))
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                logger.warning("Skipping malformed interaction in %s: %s", self.path, e)

        if len(interactions) > self.max_interactions:
            interactions = interactions[-self.max_interactions:]

        self._replace(interactions)
        logger.info("Loaded %d interactions", len(interactions))

    def _replace(self, interactions: List[Interaction]) -> None:
        self._interactions = interactions
        self._ids = {interaction.id for interaction in interactions}

    def _trim(self) -> None:
        excess = len(self._interactions) - self.max_interactions
        if excess <= 0:
            return
        for dropped in self._interactions[:excess]:
            self._ids.discard(dropped.id)
        del self._interactions[:excess]

    def _serialize(self) -> str:
        return json.dumps([interaction.to_dict() for interaction in self._interactions], indent=2)

    async def _save(self) -> None:
        # Snapshot synchronously so the file reflects memory at call time.
        data = self._serialize()
        try:
            await asyncio.to_thread(_write_atomic, self.path, data)
        except OSError as e:
            logger.error("Failed to save interactions to %s: %s", self.path, e)

    async def append(self, interaction: Interaction) -> None:
        """Add an interaction, enforce the cap, and rewrite the storage file."""
        await self.ensure_loaded()

        if interaction.id in self._ids:
            logger.debug("Ignoring duplicate interaction %s", interaction.id)
            return

        logger.debug(
            "Saving interaction id=%s type=%s timestamp=%s",
            interaction.id,
            interaction.kind.value,
            interaction.timestamp,
        )
        self._interactions.append(interaction)
        self._ids.add(interaction.id)
        self._trim()

        await self._save()

    def all(self) -> List[Interaction]:
        """Copy of every stored interaction, oldest first."""
        return list(self._interactions)

    @property
    def count(self) -> int:
        return len(self._interactions)

    async def query(self, filter: Optional[InteractionFilter] = None) -> List[Interaction]:
        """Interactions matching filter, in insertion order."""
        await self.ensure_loaded()
        if filter is None:
            return self.all()
        return [interaction for interaction in self._interactions if filter.matches(interaction)]

    def analytics(self, now: Optional[datetime] = None) -> AnalyticsData:
        """
        Aggregate the in-memory log.

        The daily series covers today and the six days before it, starting at
        local midnight, and only lists days that have interactions. Days are
        keyed by the UTC calendar date of each timestamp.
        """
        interactions = self._interactions
        total = len(interactions)
        if total == 0:
            return AnalyticsData()

        average_latency = _round_half_up(sum(i.latency_ms for i in interactions) / total)
        accepted = sum(1 for i in interactions if i.accepted is True)
        acceptance_rate = _round_half_up(accepted / total * 100)

        # Counter keeps first-encountered order and sorted() is stable, so ties
        # stay in that order.
        language_counts = Counter(i.language for i in interactions)
        top_languages = [
            LanguageCount(language=language, count=count)
            for language, count in sorted(language_counts.items(), key=lambda item: -item[1])[:TOP_LANGUAGES]
        ]

        current = now or datetime.now()
        midnight = current.replace(hour=0, minute=0, second=0, microsecond=0)
        window_start_ms = int((midnight - timedelta(days=TREND_DAYS - 1)).timestamp() * 1000)

        daily: Counter = Counter()
        for interaction in interactions:
            if interaction.timestamp < window_start_ms:
                continue
            day = datetime.fromtimestamp(interaction.timestamp / 1000, tz=timezone.utc)
            daily[day.strftime("%Y-%m-%d")] += 1

        return AnalyticsData(
            total_interactions=total,
            average_latency=average_latency,
            acceptance_rate=acceptance_rate,
            top_languages=top_languages,
            interactions_over_time=[DailyCount(date=date, count=daily[date]) for date in sorted(daily)],
        )

    async def export_to(self, path: Union[str, Path]) -> bool:
        """
        Export interactions as JSON or CSV, chosen by the file extension.

        CSV fields are comma-joined without quoting; free text containing
        commas shifts columns.

        Returns:
            True if a file was written
        """
        destination = Path(path)
        ext = destination.suffix.lower()
        if ext not in (".json", ".csv"):
            logger.warning("Unsupported export extension: %s", ext or "<none>")
            return False

        await self.ensure_loaded()

        if ext == ".json":
            data = self._serialize()
        else:
            rows = [
                ",".join(
                    [
                        i.id,
                        str(i.timestamp),
                        i.kind.value,
                        i.language,
                        "true" if i.accepted else "false",
                        str(i.latency_ms),
                        i.model_name,
                    ]
                )
                for i in self._interactions
            ]
            data = CSV_HEADER + "\n" + "\n".join(rows)

        try:
            await asyncio.to_thread(_write_atomic, destination, data)
        except OSError as e:
            logger.error("Failed to export logs to %s: %s", destination, e)
            return False

        logger.info("Exported %d interactions to %s", len(self._interactions), destination)
        return True

    async def clear(self) -> None:
        """Remove all stored interactions and persist the empty log."""
        await self.ensure_loaded()
        self._replace([])
        await self._save()

    def set_cap(self, max_interactions: int) -> None:
        """Change the cap; existing records are only trimmed by the next append."""
        if max_interactions <= 0:
            raise ValueError("max_interactions must be positive")
        self.max_interactions = max_interactions
