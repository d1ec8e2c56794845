"""TTL-keyed in-memory cache shared by concurrent analyses."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


class ResultCache:
    """
    Time-to-live cache backed by a lock-guarded dict.

    Expired entries are treated as absent and evicted lazily on the next
    lookup. Concurrent writers to the same key resolve as last write wins.
    """

    def __init__(self, ttl_seconds: float = 300, *, clock: Optional[Callable[[], float]] = None):
        self._ttl = float(ttl_seconds)
        self._clock = clock or time.monotonic
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value if still within TTL, else None."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() < entry.expires_at:
                return entry.value
            del self._store[key]
            return None

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """Store ``value`` until ``ttl_seconds`` (default: the cache TTL) have passed."""
        ttl = self._ttl if ttl_seconds is None else float(ttl_seconds)
        with self._lock:
            self._store[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


__all__ = ["CacheEntry", "ResultCache"]
