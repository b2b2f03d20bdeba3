"""camelCase JSON shapes shared by the HTTP API and the CLI."""

from __future__ import annotations

from typing import Any

from summify_search.domain.errors import UpgradeRequired
from summify_search.domain.models import BookGroup, EnrichedChapter, SearchResponse
from summify_search.domain.services.tiering import TierDefinition


def chapter_to_dict(chapter: EnrichedChapter) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": chapter.id,
        "title": chapter.title,
        "snippet": chapter.snippet,
        "relevanceScore": chapter.relevance_score,
        "whyRelevant": chapter.why_relevant,
        "keyTopics": list(chapter.key_topics),
        "source": chapter.source,
    }
    if chapter.chapter_number is not None:
        out["chapterNumber"] = chapter.chapter_number
    if chapter.ai_relevance_score is not None:
        out["aiRelevanceScore"] = chapter.ai_relevance_score
    if chapter.principles:
        out["principles"] = list(chapter.principles)
    if chapter.practical_applications:
        out["practicalApplications"] = list(chapter.practical_applications)
    return out


def book_to_dict(book: BookGroup) -> dict[str, Any]:
    return {
        "id": book.book_id,
        "title": book.title,
        "author": book.author,
        "cover": book.cover_url,
        "isbn": book.isbn,
        "averageRelevance": round(book.average_relevance, 2),
        "topChapters": [chapter_to_dict(c) for c in book.top_chapters],
    }


def search_response_to_dict(resp: SearchResponse) -> dict[str, Any]:
    return {
        "query": resp.query,
        "books": [book_to_dict(b) for b in resp.books],
        "totalBooks": resp.total_books,
        "totalChapters": resp.total_chapters,
        "averageRelevance": resp.average_relevance,
        "searchType": resp.search_type,
        "method": resp.method,
        "processingTime": resp.processing_time_ms,
        "queriesUsed": resp.queries_used,
        "queriesRemaining": resp.queries_remaining,
        "cached": resp.cached_enrichments,
        "features": dict(resp.features),
    }


def upgrade_to_dict(err: UpgradeRequired) -> dict[str, Any]:
    return {
        "upgradeRequired": True,
        "message": err.message,
        "plan": err.plan,
        "queriesUsed": err.queries_used,
        "monthlyLimit": err.monthly_limit,
        "queriesRemaining": max(err.monthly_limit - err.queries_used, 0),
        "suggestedPlan": err.suggested_plan,
    }


def tier_to_dict(tier: TierDefinition) -> dict[str, Any]:
    return {
        "name": tier.name,
        "displayName": tier.display_name,
        "monthlyLimit": tier.monthly_limit if tier.monthly_limit is not None else -1,
        "methods": [m.value for m in tier.methods],
        "analysisDepth": tier.analysis_depth.value,
        "maxChapters": tier.max_chapters,
        "features": dict(tier.features),
        "description": tier.description,
        "nextPlan": tier.next_plan,
    }
