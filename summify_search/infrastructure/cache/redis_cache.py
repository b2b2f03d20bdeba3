"""Redis-backed cache for embeddings and enrichment analyses.

Values are stored as JSON under ``{namespace}:{key}``; a TTL uses ``SETEX``.
Per-key access counts live in the hash ``{namespace}:__access__``.
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from importlib import import_module
from typing import Any, Generic, TypeVar

from summify_search.application.ports.cache_port import CacheStats
from summify_search.domain.errors import CacheError

V = TypeVar("V")


@dataclass
class RedisConfig:
    """Configuration for Redis connection."""

    url: str = "redis://localhost:6379/0"
    namespace: str = "summify"
    ttl_s: int = 0  # 0 = no expiry
    socket_timeout_s: float = 2.0


class RedisCache(Generic[V]):
    """JSON cache on Redis; every backend failure surfaces as ``CacheError``."""

    def __init__(self, cfg: RedisConfig, client: Any | None = None) -> None:
        self._cfg = cfg
        self._client = client if client is not None else self._init_client(cfg)
        self._access_key = f"{cfg.namespace}:__access__"
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def _init_client(self, cfg: RedisConfig) -> Any:
        try:
            redis = import_module("redis")
            return redis.Redis.from_url(
                cfg.url,
                decode_responses=True,
                socket_timeout=cfg.socket_timeout_s,
            )
        except Exception as ex:
            raise CacheError(f"Redis init failed: {ex}") from ex

    def _key(self, key: str) -> str:
        return f"{self._cfg.namespace}:{key}"

    def get(self, key: str) -> V | None:
        try:
            raw = self._client.get(self._key(key))
            if raw is not None:
                self._client.hincrby(self._access_key, key, 1)
        except Exception as ex:
            raise CacheError(f"Redis get failed: {ex}") from ex

        with self._lock:
            if raw is None:
                self._misses += 1
            else:
                self._hits += 1
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as ex:
            raise CacheError(f"corrupt cache entry {key!r}: {ex}") from ex

    def put(self, key: str, value: V) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as ex:
            raise CacheError(f"value for {key!r} is not JSON serialisable: {ex}") from ex
        try:
            if self._cfg.ttl_s > 0:
                self._client.setex(self._key(key), self._cfg.ttl_s, payload)
            else:
                self._client.set(self._key(key), payload)
        except Exception as ex:
            raise CacheError(f"Redis put failed: {ex}") from ex

    def access_count(self, key: str) -> int:
        try:
            raw = self._client.hget(self._access_key, key)
        except Exception as ex:
            raise CacheError(f"Redis hget failed: {ex}") from ex
        return int(raw) if raw is not None else 0

    def stats(self) -> CacheStats:
        try:
            entries = sum(
                1
                for k in self._client.scan_iter(match=f"{self._cfg.namespace}:*")
                if k != self._access_key
            )
        except Exception as ex:
            raise CacheError(f"Redis scan failed: {ex}") from ex
        with self._lock:
            return CacheStats(entries=entries, hits=self._hits, misses=self._misses)
