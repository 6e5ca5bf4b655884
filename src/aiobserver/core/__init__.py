"""
Core primitives: the event bus and bounded collections.
"""

from .bounded import BoundedKeySet, TTLMap
from .event_bus import EventBus, Topic

__all__ = [
    "BoundedKeySet",
    "TTLMap",
    "EventBus",
    "Topic",
]
