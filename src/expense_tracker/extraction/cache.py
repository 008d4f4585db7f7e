"""Bounded in-process cache for receipt field extraction results.

Entries are keyed by a text fingerprint (the first 500 characters) and
expire after a time-to-live. When the cache is full the least recently used
entry is evicted. Reads and writes are guarded by a lock, but callers that
miss concurrently on the same key may both compute a value; the last write
wins.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Generic, Optional, Tuple, TypeVar

from ..logging import get_logger

LOG = get_logger("extraction-cache")

FINGERPRINT_LENGTH = 500

V = TypeVar("V")


def fingerprint(text: str) -> str:
    return (text or "")[:FINGERPRINT_LENGTH]


class ExtractionCache(Generic[V]):
    def __init__(
        self,
        capacity: int = 256,
        ttl_seconds: Optional[float] = 3600.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive or None")
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, V]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        # Read-only: neither refreshes recency nor evicts.
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry[0], self._clock())

    def _expired(self, stored_at: float, now: float) -> bool:
        return self.ttl_seconds is not None and now - stored_at >= self.ttl_seconds

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._expired(stored_at, self._clock()):
                del self._entries[key]
                LOG.debug("Cache entry expired (key length=%s)", len(key))
                return None
            self._entries.move_to_end(key)
            return value

    def put(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = (self._clock(), value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
                LOG.debug("Cache full; evicted least recently used entry")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
