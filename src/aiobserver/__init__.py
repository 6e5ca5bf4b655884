"""
AI Observer

Passive, local-only capture and analytics of AI code-assistant usage.
"""

from .core.event_bus import EventBus, Topic
from .models import Interaction, InteractionFilter, InteractionKind
from .service import ObserverService
from .storage.interaction_store import InteractionStore

__version__ = "0.1.0"

__all__ = [
    "EventBus",
    "Topic",
    "Interaction",
    "InteractionFilter",
    "InteractionKind",
    "ObserverService",
    "InteractionStore",
]
