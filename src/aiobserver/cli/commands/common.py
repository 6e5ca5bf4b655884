"""
Helpers shared by CLI commands.
"""

import asyncio

from ...config import config
from ...storage.interaction_store import InteractionStore


def open_store() -> InteractionStore:
    """Interaction store for the configured data directory, fully loaded."""
    store = InteractionStore(config.data_dir, config.storage_limit)
    asyncio.run(store.ensure_loaded())
    return store
