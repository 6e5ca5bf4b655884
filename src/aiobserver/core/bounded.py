"""
Fixed-capacity collections for monitor state that lives as long as the process.
"""

from collections import OrderedDict
from typing import Callable, Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedKeySet(Generic[K]):
    """Set that evicts its oldest-inserted members once it grows past capacity."""

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._keys: "OrderedDict[K, None]" = OrderedDict()

    def add(self, key: K) -> None:
        if key in self._keys:
            return
        self._keys[key] = None
        while len(self._keys) > self.capacity:
            self._keys.popitem(last=False)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[K]:
        return iter(self._keys)

    def clear(self) -> None:
        self._keys.clear()


class TTLMap(Generic[K, V]):
    """
    Insertion-ordered map whose entries expire after ``ttl_ms``.

    Expiry happens only on ``sweep``; ``capacity`` caps the size regardless,
    dropping the oldest entry first. Re-setting a key moves it to the end.
    """

    def __init__(self, ttl_ms: int, capacity: int, timestamp_of: Callable[[V], float]):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.ttl_ms = ttl_ms
        self.capacity = capacity
        self._timestamp_of = timestamp_of
        self._entries: "OrderedDict[K, V]" = OrderedDict()

    def set(self, key: K, value: V) -> None:
        self._entries.pop(key, None)
        self._entries[key] = value
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def get(self, key: K) -> Optional[V]:
        return self._entries.get(key)

    def pop(self, key: K) -> Optional[V]:
        return self._entries.pop(key, None)

    def sweep(self, now: float) -> List[Tuple[K, V]]:
        """Drop entries older than the TTL and return them."""
        expired = [
            (key, value)
            for key, value in self._entries.items()
            if now - self._timestamp_of(value) > self.ttl_ms
        ]
        for key, _ in expired:
            del self._entries[key]
        return expired

    def items(self) -> List[Tuple[K, V]]:
        return list(self._entries.items())

    def as_dict(self) -> Dict[K, V]:
        return dict(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
