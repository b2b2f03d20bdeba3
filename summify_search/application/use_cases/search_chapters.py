# summify_search/application/use_cases/search_chapters.py
from __future__ import annotations

import logging
import math
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass

from summify_search.application.dto.search_dto import SearchOptions, SearchRequest
from summify_search.application.ports.chapter_repository_port import ChapterRepositoryPort
from summify_search.application.ports.embedding_port import EmbeddingPort
from summify_search.application.ports.telemetry_port import NoopTelemetry, TelemetryPort
from summify_search.application.ports.usage_counter_port import UsageCounterPort
from summify_search.application.ports.vector_store_port import VectorStorePort
from summify_search.application.services.chapter_enrichment import ChapterEnricher
from summify_search.domain.errors import (
    DomainError,
    EmbeddingUnavailable,
    InvalidQuery,
    SearchFailed,
    StorageError,
    UpgradeRequired,
    VectorIndexUnavailable,
)
from summify_search.domain.models import (
    SEARCH_TYPE_SEMANTIC_FALLBACK,
    SEARCH_TYPE_TEXT,
    SEARCH_TYPE_VECTOR,
    BookGroup,
    BookRanking,
    ChapterWithBook,
    EnrichedChapter,
    Query,
    RawHit,
    ScoredHit,
    SearchResponse,
)
from summify_search.domain.services.aggregation import aggregate, cap_total_chapters
from summify_search.domain.services.lexical_matching import match_chapters
from summify_search.domain.services.tiering import (
    DEFAULT_TIERS,
    AnalysisDepth,
    SearchMethod,
    TierDefinition,
    get_tier,
    resolve_method,
    upgrade_message,
)
from summify_search.domain.types import Result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Matches:
    hits: list[RawHit]
    chapters: dict[int, ChapterWithBook]
    search_type: str


class SearchChapters:
    """
    Application Use-Case: tier-gated chapter search grouped by book.
    No I/O of its own, uses only ports; reports outcomes via Result[T, E].

    validate -> resolve method -> vector or lexical match -> score/aggregate
    -> cap -> enrich -> count usage -> respond
    """

    def __init__(
        self,
        repository: ChapterRepositoryPort,
        enricher: ChapterEnricher,
        vector_store: VectorStorePort | None = None,
        embedding: EmbeddingPort | None = None,
        usage_counter: UsageCounterPort | None = None,
        telemetry: TelemetryPort | None = None,
        options: SearchOptions | None = None,
        tiers: Mapping[str, TierDefinition] = DEFAULT_TIERS,
    ) -> None:
        self.repository = repository
        self.enricher = enricher
        self.vector_store = vector_store
        self.embedding = embedding
        self.usage_counter = usage_counter
        self.telemetry = telemetry or NoopTelemetry()
        self.options = options or SearchOptions()
        self.tiers = tiers

    def execute(self, req: SearchRequest) -> Result[SearchResponse, DomainError]:
        started = time.perf_counter()

        # 1) Validate
        try:
            query = Query.parse(req.query)
        except InvalidQuery as ex:
            return Result.failure(ex)

        tier = get_tier(req.plan, self.tiers)
        try:
            usage = self._current_usage(req)
        except StorageError as ex:
            return self._failed(ex)

        # 2) Tier gate: no search, no increment when the allowance is spent
        decision = resolve_method(tier, usage, req.method)
        if decision.upgrade_required or decision.method is None:
            return self._upgrade_required(tier, usage, decision.upgrade_message)
        method = decision.method

        try:
            # 3) Match
            matches = self._match(query, method)

            # 4) Score, aggregate, cap
            rankings = aggregate(
                matches.hits,
                k_per_book=self.options.k_per_book,
                max_books=self.options.max_books,
                min_avg_score=self.options.min_avg_score,
                score_floor=self.options.score_floor,
            )
            rankings = cap_total_chapters(rankings, tier.max_chapters)

            # 5) Enrich in aggregation order
            enriched = self._enrich_all(
                rankings, matches.chapters, query, tier.analysis_depth, method.uses_llm_enrichment
            )

            # 6) Count the search exactly once, never past the allowance
            queries_used = self._record_usage(req, usage, tier)
        except StorageError as ex:
            return self._failed(ex)
        if queries_used is None:
            # a concurrent search spent the last query between read and count
            limit = tier.monthly_limit or 0
            return self._upgrade_required(tier, limit, upgrade_message(tier))

        books = self._build_groups(rankings, matches.chapters, enriched)
        remaining = -1 if tier.unlimited else max((tier.monthly_limit or 0) - queries_used, 0)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        response = SearchResponse(
            query=query.text,
            books=tuple(books),
            search_type=matches.search_type,
            method=method.value,
            processing_time_ms=elapsed_ms,
            queries_used=queries_used,
            queries_remaining=remaining,
            cached_enrichments=sum(1 for e in enriched.values() if e.source == "cache"),
            features=dict(tier.features),
        )

        self.telemetry.incr("search.requests", {"search_type": matches.search_type})
        self.telemetry.observe("search.latency_ms", elapsed_ms, {"method": method.value})
        logger.info(
            "search plan=%s method=%s type=%s books=%d chapters=%d elapsed_ms=%d",
            tier.name,
            method.value,
            matches.search_type,
            response.total_books,
            response.total_chapters,
            elapsed_ms,
        )
        # 7) Respond
        return Result.success(response)

    # ----- matching -----

    def _match(self, query: Query, method: SearchMethod) -> _Matches:
        if not method.uses_vector:
            hits, chapters = self._lexical(query)
            return _Matches(hits, chapters, SEARCH_TYPE_TEXT)

        try:
            hits, chapters = self._vector(query)
        except (EmbeddingUnavailable, VectorIndexUnavailable, TimeoutError) as ex:
            reason = getattr(ex, "code", "Timeout")
            logger.warning("vector search unavailable (%s), using lexical fallback: %s", reason, ex)
            self.telemetry.incr("search.fallback", {"reason": reason})
        else:
            if hits:
                return _Matches(hits, chapters, SEARCH_TYPE_VECTOR)
            logger.warning("vector search returned no chapters, using lexical fallback")
            self.telemetry.incr("search.fallback", {"reason": "NoVectorHits"})

        hits, chapters = self._lexical(query)
        return _Matches(hits, chapters, SEARCH_TYPE_SEMANTIC_FALLBACK)

    def _lexical(self, query: Query) -> tuple[list[RawHit], dict[int, ChapterWithBook]]:
        candidates = self.repository.find_text_candidates(
            query, limit=self.options.text_candidate_pool
        )
        hits = match_chapters(query, candidates, limit=self.options.lexical_candidate_limit)
        return hits, {c.chapter.id: c for c in candidates}

    def _vector(self, query: Query) -> tuple[list[RawHit], dict[int, ChapterWithBook]]:
        if self.embedding is None or self.vector_store is None:
            raise VectorIndexUnavailable("vector search is not configured")
        vector = self.embedding.embed_query(query.text)
        raw_hits = self.vector_store.search(vector, top_k=self.options.vector_candidate_limit)
        if not raw_hits:
            return [], {}
        chapters = {
            c.chapter.id: c
            for c in self.repository.get_chapters([h.chapter_id for h in raw_hits])
        }
        # Index entries whose chapter no longer exists are dropped.
        hits = [
            RawHit(
                chapter_id=h.chapter_id,
                book_id=chapters[h.chapter_id].book.id,
                metric=h.metric,
                kind=h.kind,
            )
            for h in raw_hits
            if h.chapter_id in chapters
        ]
        return hits, chapters

    # ----- enrichment -----

    def _enrich_all(
        self,
        rankings: Sequence[BookRanking],
        chapters: Mapping[int, ChapterWithBook],
        query: Query,
        depth: AnalysisDepth,
        use_llm: bool,
    ) -> dict[int, EnrichedChapter]:
        items: list[ScoredHit] = [h for r in rankings for h in r.top_hits]
        if not items:
            return {}

        if not use_llm:
            return {
                h.chapter_id: self.enricher.fallback(
                    chapters[h.chapter_id].chapter, query, h.score, depth
                )
                for h in items
            }

        results: list[EnrichedChapter | None] = [None] * len(items)
        workers = max(1, min(self.options.enrichment_max_workers, len(items)))
        timeout = self.options.enrichment_timeout_s
        # Chapters queue behind the pool, so the last one may start several rounds late.
        deadline = time.monotonic() + timeout * math.ceil(len(items) / workers)

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enrich")
        try:
            futures = [
                pool.submit(
                    self.enricher.enrich,
                    chapters[h.chapter_id].chapter,
                    query,
                    h.score,
                    depth,
                    True,
                    chapters[h.chapter_id].book,
                )
                for h in items
            ]
            for idx, future in enumerate(futures):
                try:
                    results[idx] = future.result(timeout=max(deadline - time.monotonic(), 0))
                except FuturesTimeoutError:
                    future.cancel()
                    logger.warning("enrichment timed out for chapter %s", items[idx].chapter_id)
                    self.telemetry.incr("enrichment.fallback", {"reason": "Timeout"})
                except Exception as ex:  # noqa: BLE001
                    logger.warning(
                        "enrichment failed for chapter %s: %s", items[idx].chapter_id, ex
                    )
                    self.telemetry.incr("enrichment.fallback", {"reason": type(ex).__name__})
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        out: dict[int, EnrichedChapter] = {}
        for h, result in zip(items, results, strict=True):
            out[h.chapter_id] = result or self.enricher.fallback(
                chapters[h.chapter_id].chapter, query, h.score, depth
            )
        return out

    # ----- response -----

    @staticmethod
    def _build_groups(
        rankings: Sequence[BookRanking],
        chapters: Mapping[int, ChapterWithBook],
        enriched: Mapping[int, EnrichedChapter],
    ) -> list[BookGroup]:
        groups: list[BookGroup] = []
        for r in rankings:
            book = chapters[r.top_hits[0].chapter_id].book
            groups.append(
                BookGroup(
                    book_id=r.book_id,
                    title=book.title,
                    author=book.author,
                    cover_url=book.cover_url,
                    isbn=book.isbn,
                    top_chapters=tuple(enriched[h.chapter_id] for h in r.top_hits),
                    average_relevance=r.average_score,
                )
            )
        return groups

    # ----- usage -----

    def _current_usage(self, req: SearchRequest) -> int:
        if req.subscriber_id and self.usage_counter is not None:
            return self.usage_counter.current(req.subscriber_id)
        return max(req.usage_count, 0)

    def _record_usage(self, req: SearchRequest, usage: int, tier: TierDefinition) -> int | None:
        if req.subscriber_id and self.usage_counter is not None:
            return self.usage_counter.increment(req.subscriber_id, limit=tier.monthly_limit)
        return usage + 1

    def _upgrade_required(
        self, tier: TierDefinition, usage: int, message: str | None
    ) -> Result[SearchResponse, DomainError]:
        self.telemetry.incr("search.upgrade_required", {"plan": tier.name})
        logger.info("upgrade required: plan=%s usage=%d", tier.name, usage)
        return Result.failure(
            UpgradeRequired(
                message=message or "",
                plan=tier.name,
                queries_used=usage,
                monthly_limit=tier.monthly_limit or 0,
                suggested_plan=tier.next_plan,
            )
        )

    def _failed(self, ex: StorageError) -> Result[SearchResponse, DomainError]:
        logger.error("search failed, storage unavailable: %s", ex)
        self.telemetry.incr("search.failed", {"error": ex.code})
        return Result.failure(SearchFailed(f"search failed: {ex}"))
