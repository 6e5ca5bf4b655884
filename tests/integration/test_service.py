"""
Integration tests for the wired-up observer service.
"""

import asyncio
import json

import pytest

from aiobserver.capture.editor import (
    ContentChange,
    LocalEditorHost,
    Position,
    SelectionChangeEvent,
    TextChangeEvent,
    TextDocument,
)
from aiobserver.capture.suggestion_monitor import COPILOT_EXTENSION_ID
from aiobserver.config import Config
from aiobserver.core.event_bus import EventBus, Topic
from aiobserver.service import ObserverService


def _session(directory, name="s1.json", request_id="r1"):
    document = {
        "sessionId": "session-1",
        "requests": [
            {
                "requestId": request_id,
                "message": {"text": "Explain asyncio.gather"},
                "response": [{"value": "It runs awaitables concurrently."}],
                "timestamp": 1_700_000_000_000,
            }
        ],
    }
    (directory / name).write_text(json.dumps(document))


@pytest.fixture
def cfg(tmp_path):
    return Config(data_dir=tmp_path / "data", storage_limit=50, chat_sessions_dir=tmp_path / "chat", rescan_interval_s=3600)


@pytest.fixture
def host():
    return LocalEditorHost(extensions=[COPILOT_EXTENSION_ID], workspace_root="/work")


class TestObserverService:
    """Test ObserverService."""

    @pytest.mark.asyncio
    async def test_chat_and_completion_capture_are_persisted(self, cfg, host):
        cfg.chat_sessions_dir.mkdir()
        _session(cfg.chat_sessions_dir)

        service = ObserverService(cfg=cfg, environment=host)
        await service.start()
        try:
            document = TextDocument(uri="file:///work/app.py", language_id="python", text="import os\n")
            await host.fire_selection_change(SelectionChangeEvent(document, Position(1, 0)))
            await host.fire_text_change(
                TextChangeEvent(document, [ContentChange(Position(1, 0), "def main():\n    print(os.getcwd())\n")])
            )

            kinds = sorted(i.kind.value for i in service.store.all())
            assert kinds == ["chat", "completion"]

            on_disk = json.loads((cfg.data_dir / "interactions.json").read_text())
            assert len(on_disk) == 2

            stats = service.get_stats()
            assert stats["stored_interactions"] == 2
            assert stats["completion_monitor"] == {"running": True, "pending": 0}
            assert stats["chat_monitor"]["running"] is True
        finally:
            await service.shutdown()

        assert service.event_bus.listener_count(Topic.INTERACTION) == 0
        assert host.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_disabled_capture_drops_interactions(self, cfg, host, make_interaction):
        cfg.enable_logging = False
        service = ObserverService(cfg=cfg, environment=host)
        await service.start()
        try:
            await service.event_bus.publish(Topic.INTERACTION, make_interaction())

            assert service.store.count == 0
            assert service.suggestion_monitor.get_stats().running is False
            assert service.ingestor is not None and service.ingestor.running is False
        finally:
            await service.shutdown()

    @pytest.mark.asyncio
    async def test_toggle_capture(self, cfg, host, make_interaction):
        service = ObserverService(cfg=cfg, environment=host)
        await service.start()
        try:
            await service.apply_logging_state(False)
            await service.event_bus.publish(Topic.INTERACTION, make_interaction())
            assert service.store.count == 0

            await service.apply_logging_state(True)
            await service.event_bus.publish(Topic.INTERACTION, make_interaction())
            assert service.store.count == 1
            assert service.suggestion_monitor.get_stats().running is True
        finally:
            await service.shutdown()

    @pytest.mark.asyncio
    async def test_storage_limit_applies_to_store(self, cfg, make_interaction):
        service = ObserverService(cfg=cfg)
        await service.start()
        try:
            service.set_storage_limit(2)
            for n in range(4):
                await service.event_bus.publish(Topic.INTERACTION, make_interaction(id=f"i{n}"))
            assert [i.id for i in service.store.all()] == ["i2", "i3"]
        finally:
            await service.shutdown()

    @pytest.mark.asyncio
    async def test_retries_until_chat_directory_appears(self, tmp_path, cfg):
        chat_dir = tmp_path / "late-chat"
        found = []

        def resolver():
            return chat_dir if found else None

        service = ObserverService(cfg=cfg, chat_dir_resolver=resolver, retry_interval_s=0.02)
        await service.start()
        try:
            assert service.ingestor is None

            chat_dir.mkdir()
            _session(chat_dir)
            found.append(True)

            for _ in range(100):
                if service.store.count:
                    break
                await asyncio.sleep(0.02)

            assert service.ingestor is not None
            assert service.store.count == 1
        finally:
            await service.shutdown()

    @pytest.mark.asyncio
    async def test_shared_bus_has_other_subscribers(self, cfg, make_interaction):
        bus = EventBus()
        display = []
        bus.subscribe(Topic.INTERACTION, display.append)

        service = ObserverService(cfg=cfg, event_bus=bus)
        await service.start()
        try:
            await bus.publish(Topic.INTERACTION, make_interaction())
        finally:
            await service.shutdown()

        assert len(display) == 1
        assert service.store.count == 1
        assert bus.listener_count(Topic.INTERACTION) == 1
