# summify_search/domain/services/lexical_matching.py
# Pure domain services: no I/O, deterministic, no external libraries.
"""
Priority-ordered substring classification used when vector search is unavailable.

Each candidate gets the pseudo-distance of the first rule it satisfies:

    1. query in chapter title                             0.1
    2. query in chapter text and first word in title      0.2
    3. query in chapter text                              0.4
    4. query in book title                                0.5
    5. query in author name                               0.6

Candidates matching none of these are dropped, so fallback search never returns
arbitrary chapters. WEAK_CANDIDATE_DISTANCE is reserved for callers that must place
an unscored candidate on the distance scale.
"""

from __future__ import annotations

from collections.abc import Iterable

from summify_search.domain.models import ChapterWithBook, MetricKind, Query, RawHit
from summify_search.domain.services.text_analysis import contains

TITLE_MATCH_DISTANCE = 0.1
TEXT_AND_TITLE_WORD_DISTANCE = 0.2
TEXT_MATCH_DISTANCE = 0.4
BOOK_TITLE_DISTANCE = 0.5
AUTHOR_DISTANCE = 0.6
WEAK_CANDIDATE_DISTANCE = 0.8

DEFAULT_CANDIDATE_LIMIT = 20


def classify(query: Query, candidate: ChapterWithBook) -> float | None:
    """Pseudo-distance of the best rule ``candidate`` satisfies, or None."""
    chapter, book = candidate.chapter, candidate.book
    q = query.normalized
    if contains(chapter.title, q):
        return TITLE_MATCH_DISTANCE
    in_text = contains(chapter.text, q)
    if in_text and contains(chapter.title, query.first_word):
        return TEXT_AND_TITLE_WORD_DISTANCE
    if in_text:
        return TEXT_MATCH_DISTANCE
    if contains(book.title, q):
        return BOOK_TITLE_DISTANCE
    if contains(book.author, q):
        return AUTHOR_DISTANCE
    return None


def _secondary_priority(query: Query, candidate: ChapterWithBook) -> int:
    if contains(candidate.chapter.title, query.normalized):
        return 1
    if contains(candidate.book.title, query.normalized):
        return 2
    return 3


def match_chapters(
    query: Query,
    candidates: Iterable[ChapterWithBook],
    limit: int = DEFAULT_CANDIDATE_LIMIT,
) -> list[RawHit]:
    """
    Classify, order and cap candidates.

    Order: pseudo-distance asc, longer chapter text first, secondary priority,
    then chapter id so repeated calls give identical output.
    """
    ranked: list[tuple[tuple[float, int, int, int], RawHit]] = []
    seen: set[int] = set()
    for cand in candidates:
        if cand.chapter.id in seen:
            continue
        seen.add(cand.chapter.id)
        distance = classify(query, cand)
        if distance is None:
            continue
        key = (
            distance,
            -len(cand.chapter.text or ""),
            _secondary_priority(query, cand),
            cand.chapter.id,
        )
        hit = RawHit(
            chapter_id=cand.chapter.id,
            book_id=cand.book.id,
            metric=distance,
            kind=MetricKind.DISTANCE,
        )
        ranked.append((key, hit))
    ranked.sort(key=lambda pair: pair[0])
    return [hit for _, hit in ranked[: max(limit, 0)]]
