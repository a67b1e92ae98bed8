"""Tests for the LRU cache."""

from __future__ import annotations

import pytest

from srcverify.core.cache import LRUCache


class TestLRUCache:

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            LRUCache(0)

    def test_evicts_least_recently_used(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        assert "b" not in cache
        assert cache.keys() == ["a", "c"]
        assert cache.stats.evictions == 1

    def test_set_existing_refreshes(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("a", 10)
        cache.set("c", 3)
        assert cache.keys() == ["a", "c"]
        assert cache.get("a") == 10

    def test_membership_does_not_refresh(self) -> None:
        cache: LRUCache[str, int] = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        assert "a" in cache
        cache.set("c", 3)
        assert "a" not in cache
        assert len(cache) == 2

    def test_stats(self) -> None:
        cache: LRUCache[str, int] = LRUCache(4)
        cache.set("a", 1)
        cache.get("a")
        cache.get("missing")
        assert (cache.stats.hits, cache.stats.misses) == (1, 1)
        assert cache.stats.hit_rate == 0.5
