"""Explicit cache interface with one canonical key scheme per cache.

Callers never try alternative keys or storage locations; the backend
(in-process, Redis) is an implementation detail behind ``get``/``put``.
"""

from dataclasses import dataclass
from typing import Protocol, TypeVar, runtime_checkable

V = TypeVar("V")


@dataclass(frozen=True)
class CacheStats:
    entries: int
    hits: int
    misses: int


@runtime_checkable
class CachePort(Protocol[V]):
    def get(self, key: str) -> V | None:
        """Return the cached value or None; a hit bumps the key's access count."""
        ...

    def put(self, key: str, value: V) -> None: ...

    def access_count(self, key: str) -> int: ...

    def stats(self) -> CacheStats: ...
