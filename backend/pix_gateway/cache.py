"""
In-process TTL cache.

Backs the in-memory token store; an entry is served only while the clock is
strictly before its expiry timestamp.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheEntry:
    __slots__ = ("value", "expires_at", "hits")

    def __init__(self, value: Any, expires_at: float) -> None:
        self.value = value
        self.expires_at = expires_at
        self.hits = 0

    def is_expired(self, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at

    def increment_hits(self) -> None:
        self.hits += 1


class TTLCache:
    """LRU-bounded cache whose entries expire after a per-entry TTL."""

    def __init__(self, name: str, *, max_size: int = 128, clock: Clock = time.time) -> None:
        self.name = name
        self.max_size = max(1, max_size)
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._expirations += 1
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            entry.increment_hits()
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock() + ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
                logger.debug("cache %s evicted %s", self.name, evicted)

    def expires_at(self, key: str) -> float | None:
        with self._lock:
            entry = self._entries.get(key)
            return entry.expires_at if entry else None

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "name": self.name,
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "expirations": self._expirations,
                "hit_rate": (self._hits / lookups) if lookups else 0.0,
            }


__all__ = ["CacheEntry", "Clock", "TTLCache"]
