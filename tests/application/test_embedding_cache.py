from collections.abc import Sequence

import pytest

from summify_search.application.ports.cache_port import CacheStats
from summify_search.application.services.embedding_cache import (
    CachedEmbedding,
    embedding_cache_key,
)
from summify_search.domain.errors import CacheError, EmbeddingUnavailable
from summify_search.infrastructure.cache.in_memory_cache import InMemoryCache


class CountingEmbedding:
    dimension = 3

    def __init__(self, vector: list[float] | None = None, fail: bool = False) -> None:
        self.vector = vector or [0.1, 0.2, 0.3]
        self.fail = fail
        self.calls = 0

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls += 1
        if self.fail:
            raise EmbeddingUnavailable("rate limited")
        return list(self.vector)


class BrokenCache:
    def get(self, key: str):
        raise CacheError("redis down")

    def put(self, key: str, value) -> None:
        raise CacheError("redis down")

    def access_count(self, key: str) -> int:
        raise CacheError("redis down")

    def stats(self) -> CacheStats:
        raise CacheError("redis down")


class TestCachedEmbedding:
    def test_second_call_is_served_from_cache(self) -> None:
        inner = CountingEmbedding()
        emb = CachedEmbedding(inner, InMemoryCache())
        assert emb.embed_query("Team Leadership") == [0.1, 0.2, 0.3]
        assert emb.embed_query("  team   leadership") == [0.1, 0.2, 0.3]
        assert inner.calls == 1
        assert emb.access_count("team leadership") == 1

    def test_exact_match_only(self) -> None:
        inner = CountingEmbedding()
        emb = CachedEmbedding(inner, InMemoryCache())
        emb.embed_query("leadership")
        emb.embed_query("leaders")
        assert inner.calls == 2

    def test_provider_failure_propagates_and_is_not_cached(self) -> None:
        cache: InMemoryCache[list[float]] = InMemoryCache()
        emb = CachedEmbedding(CountingEmbedding(fail=True), cache)
        with pytest.raises(EmbeddingUnavailable):
            emb.embed_query("leadership")
        assert cache.stats().entries == 0

    def test_wrong_dimension_is_unavailable(self) -> None:
        emb = CachedEmbedding(CountingEmbedding(vector=[1.0]), InMemoryCache())
        with pytest.raises(EmbeddingUnavailable):
            emb.embed_query("leadership")

    def test_broken_cache_degrades_to_provider(self) -> None:
        inner = CountingEmbedding()
        emb = CachedEmbedding(inner, BrokenCache())
        assert emb.embed_query("leadership") == [0.1, 0.2, 0.3]
        assert emb.access_count("leadership") == 0

    def test_key_scheme(self) -> None:
        assert embedding_cache_key(" Team\tLeadership ") == "emb:team leadership"
