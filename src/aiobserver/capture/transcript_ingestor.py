"""
Chat capture from assistant transcript files.

Treats a directory of per-session JSON transcripts as an append-mostly event
source: every new request record becomes one chat interaction. Filesystem
notifications trigger incremental scans, and a periodic full scan catches
notifications that were missed or coalesced.
"""

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import Config
from ..core.bounded import BoundedKeySet
from ..core.event_bus import EventBus, Topic
from ..models import (
    CHAT_LANGUAGE,
    CHAT_MODEL_NAME,
    CHAT_SOURCE_LOCATOR,
    Interaction,
    InteractionKind,
    new_id,
)
from .transcripts import extract_prompt, extract_response_text, resolve_timestamp, session_requests

logger = logging.getLogger(__name__)

TRANSCRIPT_SUFFIX = ".json"


@dataclass(frozen=True)
class IngestorStats:
    running: bool
    processed_count: int


class ChatSessionEventHandler(FileSystemEventHandler):
    """Forwards transcript changes from the watchdog thread to the event loop."""

    def __init__(self, ingestor: "TranscriptIngestor", loop: asyncio.AbstractEventLoop):
        self.ingestor = ingestor
        self.loop = loop

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory:
            return

        paths = [event.src_path, getattr(event, "dest_path", "")]
        if not any(str(path).endswith(TRANSCRIPT_SUFFIX) for path in paths if path):
            return

        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.ingestor.request_scan)


class TranscriptIngestor:
    """
    Emits one chat interaction per new request found in transcript files.

    Requests already emitted are remembered by ``<file name>:<requestId>`` in a
    bounded set that survives stop()/start() but not a process restart.
    """

    def __init__(
        self,
        chat_sessions_dir: Union[str, Path],
        event_bus: EventBus,
        rescan_interval_s: float = 15.0,
        processed_cap: int = 5000,
        observer_factory: Callable[[], Any] = Observer,
    ):
        """
        Initialize transcript ingestor.

        Args:
            chat_sessions_dir: Directory of session JSON files
            event_bus: Bus that receives chat interactions
            rescan_interval_s: Period of the fallback full scan
            processed_cap: Maximum remembered request keys
            observer_factory: Creates the watchdog observer
        """
        self.chat_sessions_dir = Path(chat_sessions_dir)
        self.event_bus = event_bus
        self.rescan_interval_s = rescan_interval_s
        self.observer_factory = observer_factory
        self.processed: BoundedKeySet[str] = BoundedKeySet(processed_cap)

        self._observer: Optional[Any] = None
        self._timer_task: Optional[asyncio.Task] = None
        self._scan_task: Optional[asyncio.Task] = None
        self._rescan_requested = False
        self._scan_lock = asyncio.Lock()
        self._start_lock = asyncio.Lock()
        # Bumped by stop() so a start() suspended mid-way knows to abandon.
        self._generation = 0

    @classmethod
    def from_config(cls, chat_sessions_dir: Union[str, Path], event_bus: EventBus, cfg: Config) -> "TranscriptIngestor":
        return cls(
            chat_sessions_dir,
            event_bus,
            rescan_interval_s=cfg.rescan_interval_s,
            processed_cap=cfg.processed_key_cap,
        )

    @property
    def running(self) -> bool:
        return self._observer is not None or self._timer_task is not None

    async def start(self) -> None:
        """
        Scan once, then watch the directory and rescan periodically.

        Overlapping calls arm a single watcher and timer. A stop() issued while
        this is still scanning cancels the start.
        """
        generation = self._generation
        async with self._start_lock:
            if self.running or generation != self._generation:
                return

            try:
                await asyncio.to_thread(self.chat_sessions_dir.mkdir, parents=True, exist_ok=True)
            except OSError as e:
                logger.error("Chat monitor could not prepare %s: %s", self.chat_sessions_dir, e)
                return

            if generation == self._generation:
                await self.scan()
            if generation != self._generation:
                logger.debug("Chat monitor stopped while starting, not arming watcher")
                return

            self._arm()

    def _arm(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            observer = self.observer_factory()
            observer.schedule(ChatSessionEventHandler(self, loop), str(self.chat_sessions_dir), recursive=False)
            observer.start()
            self._observer = observer
            logger.info("Watching chat sessions directory: %s", self.chat_sessions_dir)
        except Exception as e:
            # Periodic rescans still cover the directory without notifications.
            logger.warning("Chat monitor could not watch %s, polling only: %s", self.chat_sessions_dir, e)

        self._timer_task = loop.create_task(self._rescan_loop())

    def stop(self) -> None:
        """Stop watching and cancel timers; remembered request keys are kept."""
        self._generation += 1
        if self._observer is not None:
            observer, self._observer = self._observer, None
            try:
                observer.stop()
                observer.join(timeout=1.0)
            except Exception:
                logger.exception("Failed to stop chat sessions observer")

        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None

        if self._scan_task is not None:
            self._scan_task.cancel()
            self._scan_task = None

        self._rescan_requested = False

    def request_scan(self) -> None:
        """Schedule a scan from a filesystem notification, coalescing bursts."""
        if not self.running:
            return
        if self._scan_task is not None and not self._scan_task.done():
            self._rescan_requested = True
            return
        self._scan_task = asyncio.ensure_future(self._scan_until_settled())

    async def _scan_until_settled(self) -> None:
        while True:
            self._rescan_requested = False
            try:
                await self.scan()
            except Exception:
                logger.exception("Chat monitor incremental scan failed")
            if not self._rescan_requested:
                return

    async def _rescan_loop(self) -> None:
        while True:
            await asyncio.sleep(self.rescan_interval_s)
            try:
                await self.scan()
            except Exception:
                logger.exception("Chat monitor periodic scan failed")

    async def scan(self) -> int:
        """
        Process every transcript file in the directory.

        Returns:
            Number of interactions emitted
        """
        async with self._scan_lock:
            try:
                files = await asyncio.to_thread(self._list_transcripts)
            except OSError as e:
                logger.error("Chat monitor could not read %s: %s", self.chat_sessions_dir, e)
                return 0

            emitted = 0
            for path in files:
                emitted += await self.process_session(path)
            return emitted

    def _list_transcripts(self):
        return sorted(
            entry
            for entry in self.chat_sessions_dir.iterdir()
            if entry.name.endswith(TRANSCRIPT_SUFFIX) and entry.is_file()
        )

    async def process_session(self, path: Path) -> int:
        """Emit interactions for unseen requests in one session file."""
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
            document = json.loads(raw)
        except (OSError, ValueError) as e:
            # Files are often caught mid-write; the next scan will retry.
            logger.debug("Skipping unreadable transcript %s: %s", path, e)
            return 0

        requests = session_requests(document)
        if requests is None:
            return 0

        emitted = 0
        for index, request in enumerate(requests):
            key = f"{path.name}:{self._request_identity(index, request)}"
            if key in self.processed:
                continue

            interaction = self._build(path, request, document)
            if interaction is None:
                self.processed.add(key)
                continue

            await self.event_bus.publish(Topic.INTERACTION, interaction)
            self.processed.add(key)
            emitted += 1

        if emitted:
            logger.info("Captured %d chat interactions from %s", emitted, path.name)
        return emitted

    @staticmethod
    def _request_identity(index: int, request: Mapping[str, Any]) -> str:
        """requestId, or a hash of the record's position and content when it has none."""
        request_id = request.get("requestId")
        if request_id:
            return str(request_id)
        body = json.dumps(request, sort_keys=True, default=str)
        return "anon-" + hashlib.md5(f"{index}:{body}".encode()).hexdigest()

    def _build(self, path: Path, request: Mapping[str, Any], document: Mapping[str, Any]) -> Optional[Interaction]:
        prompt = extract_prompt(request)
        parts = request.get("response")
        response = extract_response_text(parts if isinstance(parts, list) else [])
        if not prompt and not response:
            return None

        model_id = request.get("modelId")
        return Interaction(
            id=new_id(),
            timestamp=resolve_timestamp(request, document),
            kind=InteractionKind.CHAT,
            prompt=prompt,
            response=response,
            language=CHAT_LANGUAGE,
            source_locator=CHAT_SOURCE_LOCATOR,
            accepted=True,
            latency_ms=0,
            model_name=model_id if isinstance(model_id, str) and model_id else CHAT_MODEL_NAME,
            line_number=0,
            character_count=len(response),
            metadata={
                "requestId": request.get("requestId"),
                "sessionId": document.get("sessionId"),
                "sourcePath": str(path),
            },
        )

    def get_stats(self) -> IngestorStats:
        return IngestorStats(running=self.running, processed_count=len(self.processed))
