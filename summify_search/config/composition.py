"""Composition root: turns ``AppSettings`` into wired adapters and use cases."""

from __future__ import annotations

import logging
from typing import Any

from summify_search.application.dto.search_dto import SearchOptions
from summify_search.application.ports import (
    CachePort,
    ClockPort,
    EmbeddingPort,
    LLMPort,
    NoopTelemetry,
    TelemetryPort,
    UsageCounterPort,
    VectorStorePort,
)
from summify_search.application.services.chapter_enrichment import ChapterEnricher
from summify_search.application.services.embedding_cache import CachedEmbedding
from summify_search.application.use_cases.search_chapters import SearchChapters
from summify_search.config.settings import AppSettings
from summify_search.infrastructure.cache.in_memory_cache import InMemoryCache
from summify_search.infrastructure.cache.redis_cache import RedisCache, RedisConfig
from summify_search.infrastructure.embeddings.hf_sentence_transformers import HFEmbeddingAdapter
from summify_search.infrastructure.embeddings.openai_embedding_adapter import (
    OpenAIEmbeddingAdapter,
)
from summify_search.infrastructure.llm.openai_chat_adapter import OpenAIChatAdapter
from summify_search.infrastructure.storage.sqlite_chapter_repository import (
    SQLiteChapterRepository,
)
from summify_search.infrastructure.storage.sqlite_usage_counter import SQLiteUsageCounter
from summify_search.infrastructure.telemetry.otel_adapter import OpenTelemetryAdapter, OtelConfig
from summify_search.infrastructure.time.system_clock import SystemClock
from summify_search.infrastructure.vectorstore.qdrant_vector_store import (
    QdrantVectorStoreAdapter,
)

logger = logging.getLogger(__name__)


def build_clock() -> ClockPort:
    return SystemClock()


def build_repository(settings: AppSettings) -> SQLiteChapterRepository:
    return SQLiteChapterRepository(settings.db_path, dimension=settings.embedding_dim)


def build_usage_counter(settings: AppSettings) -> UsageCounterPort:
    return SQLiteUsageCounter(settings.db_path)


def build_cache(
    settings: AppSettings, namespace: str, ttl_s: int, max_entries: int
) -> CachePort[Any]:
    """One cache per namespace; the backend is a deployment choice."""
    if settings.cache_backend == "redis":
        return RedisCache(
            RedisConfig(url=settings.redis_url, namespace=f"summify:{namespace}", ttl_s=ttl_s)
        )
    return InMemoryCache(ttl_s=ttl_s, max_entries=max_entries, clock=build_clock())


def build_raw_embedding(settings: AppSettings) -> EmbeddingPort | None:
    backend = settings.embedding_backend
    if backend == "local":
        return HFEmbeddingAdapter(
            model_name=settings.local_embedding_model,
            device=settings.embedding_device,
            dimension=settings.embedding_dim,
        )
    if backend == "openai":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY not set; vector search disabled")
            return None
        return OpenAIEmbeddingAdapter(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            dimension=settings.embedding_dim,
            base_url=settings.llm_base_url or None,
            timeout_s=settings.embedding_timeout_s,
        )
    return None


def build_embedding(settings: AppSettings) -> EmbeddingPort | None:
    inner = build_raw_embedding(settings)
    if inner is None:
        return None
    cache = build_cache(
        settings,
        "embedding",
        ttl_s=settings.embedding_cache_ttl_s,
        max_entries=settings.embedding_cache_max_entries,
    )
    return CachedEmbedding(inner, cache)


def build_vector_store(
    settings: AppSettings, repository: SQLiteChapterRepository | None = None
) -> VectorStorePort | None:
    backend = settings.vector_backend
    if backend == "qdrant":
        return QdrantVectorStoreAdapter(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key or None,
            collection=settings.collection,
            timeout_s=settings.qdrant_timeout_s,
        )
    if backend == "sqlite":
        return repository or build_repository(settings)
    return None


def build_llm(settings: AppSettings) -> LLMPort | None:
    if not settings.openai_api_key:
        return None
    return OpenAIChatAdapter(
        api_key=settings.openai_api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url or None,
        timeout_s=settings.enrichment_timeout_s,
    )


def build_telemetry(settings: AppSettings) -> TelemetryPort:
    if not settings.telemetry_enabled:
        return NoopTelemetry()
    cfg = OtelConfig(
        service_name="summify-search",
        otlp_endpoint=settings.otlp_endpoint or None,
        environment=settings.telemetry_environment,
    )
    return OpenTelemetryAdapter(cfg)


def build_enricher(settings: AppSettings, telemetry: TelemetryPort | None = None) -> ChapterEnricher:
    cache = build_cache(
        settings,
        "enrichment",
        ttl_s=settings.enrichment_cache_ttl_s,
        max_entries=settings.enrichment_cache_max_entries,
    )
    return ChapterEnricher(llm=build_llm(settings), cache=cache, telemetry=telemetry)


def build_search_options(settings: AppSettings) -> SearchOptions:
    return SearchOptions(
        k_per_book=settings.results_per_book,
        max_books=settings.max_books,
        min_avg_score=settings.min_average_score,
        lexical_candidate_limit=settings.lexical_candidate_limit,
        vector_candidate_limit=settings.vector_candidate_limit,
        score_floor=settings.score_floor,
        enrichment_timeout_s=settings.enrichment_timeout_s,
        enrichment_max_workers=settings.enrichment_max_workers,
    )


def build_search_use_case(settings: AppSettings | None = None) -> SearchChapters:
    settings = settings or AppSettings()
    repository = build_repository(settings)
    telemetry = build_telemetry(settings)
    return SearchChapters(
        repository=repository,
        enricher=build_enricher(settings, telemetry),
        vector_store=build_vector_store(settings, repository),
        embedding=build_embedding(settings),
        usage_counter=build_usage_counter(settings),
        telemetry=telemetry,
        options=build_search_options(settings),
    )
