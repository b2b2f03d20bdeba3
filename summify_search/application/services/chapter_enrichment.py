"""Best-effort chapter enrichment: LLM analysis with a deterministic local fallback.

The LLM is asked for one strict JSON object:

    {
      "relevanceScore": int 25-100,
      "whyRelevant": str,
      "keyTopics": [str, ...],
      "principles": [str, ...],              (premium depth only)
      "practicalApplications": [str, ...]    (premium depth only)
    }

A reply that is not a JSON object is an ``EnrichmentParseError``; inside a valid
object each field is clamped or defaulted on its own. Any failure of the primary
path lands in ``fallback`` and is never raised to the caller.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from summify_search.application.ports.cache_port import CachePort
from summify_search.application.ports.llm_port import ChatMessage, LLMPort
from summify_search.application.ports.telemetry_port import NoopTelemetry, TelemetryPort
from summify_search.domain.errors import CacheError, EnrichmentParseError
from summify_search.domain.models import BookRecord, ChapterRecord, EnrichedChapter, Query
from summify_search.domain.services.relevance_scoring import SCORE_CEILING, SCORE_FLOOR
from summify_search.domain.services.text_analysis import (
    MAX_FALLBACK_TOPICS,
    TOPIC_VOCABULARY,
    extract_snippet,
    fallback_explanation,
    vocabulary_topics,
)
from summify_search.domain.services.tiering import AnalysisDepth

logger = logging.getLogger(__name__)

MAX_KEY_TOPICS = 5
MAX_LIST_ITEMS = 3
PROMPT_TEXT_CHARS = 800

SYSTEM_PROMPT = "You are an expert content analyst. Always respond with valid JSON only."

_DEPTH_INSTRUCTIONS = {
    AnalysisDepth.BASIC: "Keep the explanation to one or two sentences.",
    AnalysisDepth.ADVANCED: (
        "Explain in two or three sentences what the reader will learn and how it "
        "applies to the search."
    ),
    AnalysisDepth.PREMIUM: (
        "Explain in two or three sentences what the reader will learn. Also list the "
        "core principles the chapter teaches and concrete practical applications."
    ),
}


def enrichment_cache_key(chapter_id: int, query: Query, depth: AnalysisDepth) -> str:
    return f"enrich:{chapter_id}:{depth.value}:{query.normalized}"


def build_prompt(
    chapter: ChapterRecord, query: Query, depth: AnalysisDepth, book: BookRecord | None = None
) -> str:
    excerpt = (chapter.text or "")[:PROMPT_TEXT_CHARS]
    fields = [
        f'  "relevanceScore": number ({SCORE_FLOOR}-{SCORE_CEILING}, how relevant this '
        f'chapter is to "{query.text}"),',
        '  "whyRelevant": "why this chapter helps with the search",',
        '  "keyTopics": ["topic1", "topic2", "topic3"]',
    ]
    if depth is AnalysisDepth.PREMIUM:
        fields[-1] += ","
        fields.append('  "principles": ["principle1", "principle2"],')
        fields.append('  "practicalApplications": ["application1", "application2"]')
    source = f' from "{book.title}" by {book.author}' if book is not None else ""
    return (
        f'Analyze this chapter{source} for a reader searching for "{query.text}".\n\n'
        f'Title: "{chapter.title}"\n'
        f"Content: {excerpt}\n\n"
        "Respond with a JSON object:\n{\n" + "\n".join(fields) + "\n}\n\n"
        + _DEPTH_INSTRUCTIONS[depth]
    )


def _strip_fences(text: str) -> str:
    body = text.strip()
    if body.startswith("```"):
        body = body.split("\n", 1)[1] if "\n" in body else ""
        if body.rstrip().endswith("```"):
            body = body.rstrip()[:-3]
    return body.strip()


def _string_list(value: Any, limit: int) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    items = [str(v).strip() for v in value if isinstance(v, str | int | float)]
    return tuple(i for i in items if i)[:limit]


def _ai_score(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return int(min(max(round(value), SCORE_FLOOR), SCORE_CEILING))


def parse_enrichment(text: str, depth: AnalysisDepth) -> dict[str, Any]:
    """Parse the LLM reply into the cached analysis shape.

    Raises:
        EnrichmentParseError: the reply is not a JSON object.
    """
    try:
        data = json.loads(_strip_fences(text))
    except (TypeError, ValueError) as ex:
        raise EnrichmentParseError(f"reply is not JSON: {ex}") from ex
    if not isinstance(data, dict):
        raise EnrichmentParseError(f"expected JSON object, got {type(data).__name__}")

    why = data.get("whyRelevant")
    premium = depth is AnalysisDepth.PREMIUM
    return {
        "ai_relevance_score": _ai_score(data.get("relevanceScore")),
        "why_relevant": why.strip() if isinstance(why, str) else "",
        "key_topics": list(_string_list(data.get("keyTopics"), MAX_KEY_TOPICS)),
        "principles": list(_string_list(data.get("principles"), MAX_LIST_ITEMS))
        if premium
        else [],
        "practical_applications": list(
            _string_list(data.get("practicalApplications"), MAX_LIST_ITEMS)
        )
        if premium
        else [],
    }


class ChapterEnricher:
    """Turns a matched chapter into an ``EnrichedChapter``; never raises."""

    def __init__(
        self,
        llm: LLMPort | None = None,
        cache: CachePort[dict[str, Any]] | None = None,
        telemetry: TelemetryPort | None = None,
        vocabulary: Sequence[str] = TOPIC_VOCABULARY,
        temperature: float = 0.3,
        max_tokens: int = 400,
    ) -> None:
        self.llm = llm
        self.cache = cache
        self.telemetry = telemetry or NoopTelemetry()
        self.vocabulary = tuple(vocabulary)
        self.temperature = temperature
        self.max_tokens = max_tokens

    def enrich(
        self,
        chapter: ChapterRecord,
        query: Query,
        relevance_score: int,
        depth: AnalysisDepth = AnalysisDepth.BASIC,
        use_llm: bool = True,
        book: BookRecord | None = None,
    ) -> EnrichedChapter:
        if not use_llm:
            return self.fallback(chapter, query, relevance_score, depth)

        key = enrichment_cache_key(chapter.id, query, depth)
        cached = self._lookup(key)
        if cached is not None:
            self.telemetry.incr("enrichment.cache_hit", {"depth": depth.value})
            return self._build(chapter, query, relevance_score, depth, cached, source="cache")

        if self.llm is None:
            return self.fallback(chapter, query, relevance_score, depth)

        try:
            analysis = self._analyze(chapter, query, depth, book)
        except Exception as ex:  # noqa: BLE001
            reason = getattr(ex, "code", type(ex).__name__)
            logger.warning("enrichment fallback for chapter %s (%s): %s", chapter.id, reason, ex)
            self.telemetry.incr("enrichment.fallback", {"reason": reason})
            return self.fallback(chapter, query, relevance_score, depth)

        self._store(key, analysis)
        return self._build(chapter, query, relevance_score, depth, analysis, source="llm")

    def fallback(
        self,
        chapter: ChapterRecord,
        query: Query,
        relevance_score: int,
        depth: AnalysisDepth = AnalysisDepth.BASIC,
    ) -> EnrichedChapter:
        """Deterministic enrichment from keyword overlap and the topic vocabulary."""
        return EnrichedChapter(
            id=chapter.id,
            title=chapter.title,
            snippet=extract_snippet(chapter.text, query.text),
            relevance_score=relevance_score,
            why_relevant=fallback_explanation(query.text, chapter.title, chapter.text, depth.value),
            key_topics=tuple(
                vocabulary_topics(chapter.text, query.text, self.vocabulary, MAX_FALLBACK_TOPICS)
            ),
            source="fallback",
            chapter_number=chapter.chapter_number,
        )

    def _analyze(
        self, chapter: ChapterRecord, query: Query, depth: AnalysisDepth, book: BookRecord | None
    ) -> dict[str, Any]:
        assert self.llm is not None
        messages = [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=build_prompt(chapter, query, depth, book)),
        ]
        response = self.llm.chat(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            json_mode=True,
        )
        return parse_enrichment(response.text, depth)

    def _build(
        self,
        chapter: ChapterRecord,
        query: Query,
        relevance_score: int,
        depth: AnalysisDepth,
        analysis: Mapping[str, Any],
        source: str,
    ) -> EnrichedChapter:
        why = analysis.get("why_relevant") or fallback_explanation(
            query.text, chapter.title, chapter.text, depth.value
        )
        topics = tuple(analysis.get("key_topics") or ()) or tuple(
            vocabulary_topics(chapter.text, query.text, self.vocabulary, MAX_FALLBACK_TOPICS)
        )
        return EnrichedChapter(
            id=chapter.id,
            title=chapter.title,
            snippet=extract_snippet(chapter.text, query.text),
            relevance_score=relevance_score,
            why_relevant=why,
            key_topics=topics,
            principles=tuple(analysis.get("principles") or ()),
            practical_applications=tuple(analysis.get("practical_applications") or ()),
            ai_relevance_score=analysis.get("ai_relevance_score"),
            source=source,
            chapter_number=chapter.chapter_number,
        )

    def _lookup(self, key: str) -> dict[str, Any] | None:
        if self.cache is None:
            return None
        try:
            value = self.cache.get(key)
        except CacheError as ex:
            logger.warning("enrichment cache read failed, treating as miss: %s", ex)
            return None
        if value is not None:
            logger.debug("enrichment cache hit for %r", key)
        return value

    def _store(self, key: str, analysis: dict[str, Any]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(key, analysis)
        except CacheError as ex:
            logger.warning("enrichment cache write dropped: %s", ex)
