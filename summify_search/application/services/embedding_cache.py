"""Cache-fronted embedding provider.

Vectors are cached by the normalized query text (exact match only). Backend
failures on the cache side degrade to a miss; provider failures propagate as
``EmbeddingUnavailable`` so the orchestrator can fall back.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from summify_search.application.ports.cache_port import CachePort
from summify_search.application.ports.embedding_port import EmbeddingPort
from summify_search.domain.errors import CacheError, EmbeddingUnavailable

logger = logging.getLogger(__name__)


def embedding_cache_key(text: str, prefix: str = "emb") -> str:
    """Canonical key: collapsed whitespace, casefolded."""
    return f"{prefix}:{' '.join(text.split()).casefold()}"


class CachedEmbedding:
    """EmbeddingPort decorator that consults a cache before the provider."""

    def __init__(
        self, inner: EmbeddingPort, cache: CachePort[list[float]], key_prefix: str = "emb"
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._prefix = key_prefix

    @property
    def dimension(self) -> int:
        return self._inner.dimension

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        # Bulk embedding only serves indexing and is not cached.
        return self._inner.embed_texts(texts)

    def embed_query(self, text: str) -> list[float]:
        key = embedding_cache_key(text, self._prefix)
        cached = self._lookup(key)
        if cached is not None:
            logger.debug("embedding cache hit for %r", key)
            return list(cached)

        vector = self._inner.embed_query(text)
        if len(vector) != self.dimension:
            raise EmbeddingUnavailable(
                f"provider returned {len(vector)}-d vector, expected {self.dimension}"
            )
        self._store(key, vector)
        return vector

    def access_count(self, text: str) -> int:
        try:
            return self._cache.access_count(embedding_cache_key(text, self._prefix))
        except CacheError:
            return 0

    def _lookup(self, key: str) -> list[float] | None:
        try:
            return self._cache.get(key)
        except CacheError as ex:
            logger.warning("embedding cache read failed, treating as miss: %s", ex)
            return None

    def _store(self, key: str, vector: list[float]) -> None:
        try:
            self._cache.put(key, vector)
        except CacheError as ex:
            logger.warning("embedding cache write dropped: %s", ex)
