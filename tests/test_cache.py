"""Tests for cache module."""

import pytest
from hypothesis import given, strategies as st

from conftest import FakeClock
from contract_engine.core.cache import LRUCache, MemoryCache


def test_lru_basic():
    """Test basic cache operations."""
    cache = LRUCache[str](max_size=3)

    cache.set("a", "value_a")
    cache.set("b", "value_b")
    cache.set("c", "value_c")

    assert cache.get("a") == "value_a"
    assert cache.get("b") == "value_b"
    assert cache.get("c") == "value_c"
    assert len(cache) == 3


def test_lru_order():
    """Test LRU ordering (most recently used stays)."""
    cache = LRUCache[str](max_size=2)

    cache.set("a", "value_a")
    cache.set("b", "value_b")
    _ = cache.get("a")

    # Add "c" - should evict "b" (least recent)
    cache.set("c", "value_c")

    assert cache.get("a") == "value_a"
    assert cache.get("b") is None
    assert cache.stats.evictions == 1


def test_default_ttl_expiration():
    """Test the cache-wide TTL with an injected clock."""
    clock = FakeClock(start=0.0)
    cache = LRUCache[str](max_size=10, ttl_seconds=5, clock=clock)

    cache.set("key", "value")
    clock.advance(4.9)
    assert cache.get("key") == "value"

    clock.advance(1)
    assert cache.get("key") is None
    assert len(cache) == 0


def test_per_entry_ttl_overrides_default():
    clock = FakeClock(start=0.0)
    cache = LRUCache[str](max_size=10, ttl_seconds=100, clock=clock)

    cache.set("short", "s", ttl_seconds=1)
    cache.set("long", "l")
    clock.advance(2)

    assert cache.get("short") is None
    assert cache.get("long") == "l"


def test_lru_delete():
    """Test deletion."""
    cache = LRUCache[str](max_size=10)

    cache.set("key", "value")
    assert cache.delete("key") is True
    assert cache.get("key") is None
    assert cache.delete("key") is False


def test_stats_hit_miss():
    """Test statistics tracking."""
    cache = LRUCache[str](max_size=10)

    cache.set("key", "value")
    _ = cache.get("key")
    _ = cache.get("missing")

    stats = cache.stats
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.to_dict()["hit_rate"] == 0.5


def test_invalid_max_size():
    with pytest.raises(ValueError):
        LRUCache[str](max_size=0)


def test_memory_cache_interface():
    """Test the get/set/delete adapter used by the pipeline."""
    clock = FakeClock(start=0.0)
    cache = MemoryCache(max_size=10, clock=clock)

    cache.set("contracts:user:u1", {"version": "1.0.0"}, 300)
    assert cache.get("contracts:user:u1") == {"version": "1.0.0"}

    clock.advance(300)
    assert cache.get("contracts:user:u1") is None

    cache.set("k", 1, 10)
    cache.delete("k")
    cache.delete("never-set")
    assert cache.get("k") is None
    assert cache.stats.hits == 1


@given(st.lists(st.text(min_size=1, max_size=10), min_size=1, max_size=50))
def test_cache_preserves_values(keys):
    """Property test: cache preserves values correctly."""
    cache = LRUCache[str](max_size=100)

    for key in keys:
        cache.set(key, f"value_{key}")

    for key in keys:
        assert cache.get(key) == f"value_{key}"
