"""
Shared fixtures for AI Observer tests.
"""

import pytest

from aiobserver.core.event_bus import EventBus, Topic
from aiobserver.models import Interaction, InteractionKind, new_id
from aiobserver.storage.interaction_store import InteractionStore


@pytest.fixture
def make_interaction():
    """Factory for completion interactions with overridable fields."""

    def factory(**overrides) -> Interaction:
        fields = {
            "id": new_id(),
            "timestamp": 1_700_000_000_000,
            "kind": InteractionKind.COMPLETION,
            "prompt": "def add(a, b):\n",
            "response": "    return a + b\n",
            "language": "python",
            "source_locator": "src/math.py",
            "accepted": True,
            "latency_ms": 120,
            "model_name": "copilot",
            "line_number": 3,
            "character_count": 17,
        }
        fields.update(overrides)
        return Interaction(**fields)

    return factory


@pytest.fixture
def event_bus():
    bus = EventBus()
    yield bus
    bus.clear()


@pytest.fixture
def captured(event_bus):
    """Interactions published on the bus during a test."""
    received = []
    event_bus.subscribe(Topic.INTERACTION, received.append)
    return received


@pytest.fixture
def store(tmp_path):
    return InteractionStore(tmp_path, max_interactions=100)
