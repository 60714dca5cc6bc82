"""Generic LRU cache with per-entry TTL and statistics.

`LRUCache` is the in-process store; `MemoryCache` exposes it through the
best-effort key/value interface the pipeline expects from a cache
collaborator (get / set with TTL / delete).
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Protocol, TypeVar

from .hash import Algorithm, hash_string

T = TypeVar("T")


@dataclass
class Stats:
    """Cache statistics."""

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate (0.0 to 1.0)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Export as dictionary."""
        return {
            "size": self.size,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }


class LRUCache(Generic[T]):
    """
    LRU cache with TTL support and statistics tracking.

    Examples:
        >>> cache = LRUCache[str](max_size=100, ttl_seconds=3600)
        >>> cache.set("key", "value")
        >>> cache.get("key")
        'value'
    """

    def __init__(
        self,
        max_size: int = 100,
        ttl_seconds: float | None = None,
        hash_algorithm: Algorithm = Algorithm.XXHASH64,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize LRU cache.

        Args:
            max_size: Maximum number of entries
            ttl_seconds: Default time-to-live in seconds (None = no expiration)
            hash_algorithm: Algorithm for computing cache keys
            clock: Time source in seconds
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.hash_algorithm = hash_algorithm
        self._clock = clock

        # key -> (value, expires_at or None)
        self._cache: OrderedDict[str, tuple[T, float | None]] = OrderedDict()
        self._stats = Stats(max_size=max_size)
        self._lock = threading.Lock()

    def _compute_key(self, key: str) -> str:
        return hash_string(key, self.hash_algorithm, truncate=16)

    def get(self, key: str) -> T | None:
        """Get cached value if present and not expired."""
        cache_key = self._compute_key(key)

        with self._lock:
            entry = self._cache.get(cache_key)
            if entry is None:
                self._stats.misses += 1
                return None

            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._cache[cache_key]
                self._stats.size = len(self._cache)
                self._stats.misses += 1
                return None

            self._cache.move_to_end(cache_key)
            self._stats.hits += 1
            return value

    def set(self, key: str, value: T, ttl_seconds: float | None = None) -> None:
        """
        Cache value.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Per-entry TTL, overrides the cache default
        """
        cache_key = self._compute_key(key)
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        expires_at = self._clock() + ttl if ttl is not None else None

        with self._lock:
            self._cache.pop(cache_key, None)
            self._cache[cache_key] = (value, expires_at)

            if len(self._cache) > self.max_size:
                self._cache.popitem(last=False)
                self._stats.evictions += 1

            self._stats.size = len(self._cache)

    def delete(self, key: str) -> bool:
        """Delete entry; True if it existed."""
        cache_key = self._compute_key(key)
        with self._lock:
            if cache_key in self._cache:
                del self._cache[cache_key]
                self._stats.size = len(self._cache)
                return True
            return False

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            self._cache.clear()
            self._stats.size = 0

    @property
    def stats(self) -> Stats:
        """Get cache statistics."""
        return self._stats

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        """Check if key exists (doesn't update LRU order or check expiry)."""
        return self._compute_key(key) in self._cache


class Cache(Protocol):
    """Best-effort key/value store used for memoization."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryCache:
    """In-process `Cache` backed by `LRUCache`."""

    def __init__(self, max_size: int = 500, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: LRUCache[Any] = LRUCache(max_size=max_size, clock=clock)

    def get(self, key: str) -> Any | None:
        return self._store.get(key)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        self._store.set(key, value, ttl_seconds=ttl_seconds)

    def delete(self, key: str) -> None:
        self._store.delete(key)

    @property
    def stats(self) -> Stats:
        return self._store.stats


__all__ = ["LRUCache", "Stats", "Cache", "MemoryCache"]
