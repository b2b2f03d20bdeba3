"""Thread-safe in-process cache with optional TTL and LRU bound.

``ttl_s == 0`` means entries never expire; ``max_entries == 0`` means unbounded.
Access counts survive eviction of the value so repeated queries stay visible.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Generic, TypeVar

from summify_search.application.ports.cache_port import CacheStats
from summify_search.application.ports.clock_port import ClockPort
from summify_search.infrastructure.time.system_clock import SystemClock

V = TypeVar("V")


class InMemoryCache(Generic[V]):
    def __init__(
        self, ttl_s: float = 0, max_entries: int = 0, clock: ClockPort | None = None
    ) -> None:
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock or SystemClock()
        self._data: OrderedDict[str, tuple[float, V]] = OrderedDict()
        self._access: dict[str, int] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        now = self._clock.timestamp()
        with self._lock:
            entry = self._data.get(key)
            if entry is not None and self.ttl_s > 0 and now - entry[0] >= self.ttl_s:
                del self._data[key]
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._data.move_to_end(key)
            self._hits += 1
            self._access[key] = self._access.get(key, 0) + 1
            return entry[1]

    def put(self, key: str, value: V) -> None:
        now = self._clock.timestamp()
        with self._lock:
            self._data[key] = (now, value)
            self._data.move_to_end(key)
            if self.max_entries > 0:
                while len(self._data) > self.max_entries:
                    self._data.popitem(last=False)

    def access_count(self, key: str) -> int:
        with self._lock:
            return self._access.get(key, 0)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(entries=len(self._data), hits=self._hits, misses=self._misses)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._access.clear()
            self._hits = self._misses = 0
