"""Short-lived cache for inventory reads.

Owned by whoever constructs it (the API dependency provider keeps one per
process); nothing here is module-global. The clock is injectable so tests
can move time forward deterministically.
"""

import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")

InventoryKey = tuple[str, str]


class TTLCache(Generic[V]):
    """Bounded map whose entries expire ``ttl_seconds`` after being set."""

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[InventoryKey, tuple[float, V]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: InventoryKey) -> V | None:
        """Return the cached value, or None if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, key: InventoryKey, value: V) -> None:
        """Cache a value, evicting the oldest entry when full."""
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def invalidate(self, key: InventoryKey) -> None:
        """Drop one entry."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
