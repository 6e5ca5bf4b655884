"""
Storage layer for AI Observer.
"""

from .interaction_store import InteractionStore

__all__ = [
    "InteractionStore",
]
