"""
In-process publish/subscribe bus.

Producers of interactions (the completion and chat monitors) publish here and
consumers (storage, displays) subscribe, so no component calls another
directly. Each topic is bound to a single payload type.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Union

from ..models import Interaction

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    INTERACTION = "interaction"


TOPIC_PAYLOADS: Dict[Topic, type] = {
    Topic.INTERACTION: Interaction,
}

Handler = Callable[[Any], Union[None, Awaitable[None]]]


class EventBus:
    """
    Fan-out of topic payloads to registered handlers.

    ``publish`` runs every handler concurrently and waits for all of them, so a
    caller awaiting it knows side effects such as persistence were attempted.
    A failing handler is logged and never affects its siblings or the
    publisher. The bus does not queue: ordering across publishes is whatever
    order callers await them in.
    """

    def __init__(self):
        self._handlers: Dict[Topic, List[Handler]] = {}

    def subscribe(self, topic: Topic, handler: Handler) -> None:
        self._handlers.setdefault(topic, []).append(handler)

    def unsubscribe(self, topic: Topic, handler: Handler) -> None:
        handlers = self._handlers.get(topic)
        if not handlers:
            return

        remaining = [registered for registered in handlers if registered != handler]
        if remaining:
            self._handlers[topic] = remaining
        else:
            del self._handlers[topic]

    async def publish(self, topic: Topic, payload: Any) -> None:
        """
        Deliver payload to every handler registered for topic.

        Raises:
            TypeError: if payload is not the type bound to topic
        """
        expected = TOPIC_PAYLOADS[topic]
        if not isinstance(payload, expected):
            raise TypeError(
                f"{topic.value} expects {expected.__name__}, got {type(payload).__name__}"
            )

        handlers = list(self._handlers.get(topic, ()))
        if not handlers:
            return

        await asyncio.gather(*(self._invoke(topic, handler, payload) for handler in handlers))

    async def _invoke(self, topic: Topic, handler: Handler, payload: Any) -> None:
        try:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("EventBus handler for %s failed", topic.value)

    def clear(self) -> None:
        """Remove all registrations."""
        self._handlers.clear()

    def listener_count(self, topic: Topic) -> int:
        return len(self._handlers.get(topic, ()))
