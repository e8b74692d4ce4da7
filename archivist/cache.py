"""
Cache - bounded in-memory LRU cache for upstream responses.

Entries are evicted least-recently-used first once either the entry count
or the total byte size exceeds its limit.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class CacheEntry:
    key: str
    value: Any
    size: int
    created_at: datetime


class ResponseCache:
    """In-memory cache with LRU eviction, bounded by count and bytes."""

    def __init__(self, max_size: int = 256, max_bytes: int = 256 << 20):
        self.max_size = max_size
        self.max_bytes = max_bytes
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._bytes = 0

    def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        self._cache.move_to_end(key)
        return entry.value

    def set(self, key: str, value: Any, size: int = 0) -> None:
        # Values larger than the whole cache are never stored
        if self.max_size <= 0 or size > self.max_bytes:
            self.delete(key)
            return

        self.delete(key)
        self._cache[key] = CacheEntry(key=key, value=value, size=size, created_at=datetime.now())
        self._bytes += size

        while len(self._cache) > self.max_size or self._bytes > self.max_bytes:
            self._evict_oldest()

    def delete(self, key: str) -> None:
        entry = self._cache.pop(key, None)
        if entry is not None:
            self._bytes -= entry.size

    def clear(self) -> None:
        self._cache.clear()
        self._bytes = 0

    def _evict_oldest(self):
        """Evict least recently used entry."""
        _, entry = self._cache.popitem(last=False)
        self._bytes -= entry.size

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    @property
    def size(self) -> int:
        return len(self._cache)

    @property
    def total_bytes(self) -> int:
        return self._bytes
