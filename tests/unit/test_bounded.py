"""
Unit tests for bounded collections.
"""

import pytest

from aiobserver.core.bounded import BoundedKeySet, TTLMap


class TestBoundedKeySet:
    """Test BoundedKeySet."""

    def test_evicts_oldest_inserted(self):
        keys = BoundedKeySet(3)
        for key in ["a", "b", "c", "d", "e"]:
            keys.add(key)

        assert len(keys) == 3
        assert list(keys) == ["c", "d", "e"]
        assert "a" not in keys

    def test_re_adding_does_not_refresh_position(self):
        """Eviction is by insertion, not by access."""
        keys = BoundedKeySet(2)
        keys.add("a")
        keys.add("b")
        keys.add("a")
        keys.add("c")

        assert "a" not in keys
        assert list(keys) == ["b", "c"]

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            BoundedKeySet(0)


class TestTTLMap:
    """Test TTLMap."""

    def _map(self, ttl_ms=1000, capacity=10):
        return TTLMap(ttl_ms=ttl_ms, capacity=capacity, timestamp_of=lambda value: value)

    def test_sweep_drops_expired(self):
        entries = self._map()
        entries.set("old", 0)
        entries.set("new", 900)

        expired = entries.sweep(1500)

        assert expired == [("old", 0)]
        assert "old" not in entries
        assert entries.get("new") == 900

    def test_entry_at_exact_ttl_survives(self):
        entries = self._map()
        entries.set("k", 0)
        assert entries.sweep(1000) == []
        assert "k" in entries

    def test_capacity_drops_oldest(self):
        entries = self._map(capacity=2)
        entries.set("a", 1)
        entries.set("b", 2)
        entries.set("c", 3)

        assert list(entries.as_dict()) == ["b", "c"]

    def test_pop_and_clear(self):
        entries = self._map()
        entries.set("a", 1)
        assert entries.pop("a") == 1
        assert entries.pop("a") is None

        entries.set("b", 2)
        entries.clear()
        assert len(entries) == 0
