# summify_search/domain/services/aggregation.py
# Pure domain services: no I/O, deterministic, no external libraries.
from __future__ import annotations

from collections.abc import Sequence

from summify_search.domain.models import BookRanking, RawHit, ScoredHit
from summify_search.domain.services.relevance_scoring import SCORE_FLOOR, score_hit

DEFAULT_K_PER_BOOK = 3
DEFAULT_MAX_BOOKS = 12
DEFAULT_MIN_AVG_SCORE = 10


def deduplicate_hits(hits: Sequence[RawHit]) -> list[ScoredHit]:
    """
    Score hits and keep one entry per chapter id (the best-scoring one).

    Two matchers may report the same chapter; the better distance wins and the
    first occurrence is kept on ties.
    """
    best: dict[int, ScoredHit] = {}
    for hit in hits:
        scored = score_hit(hit)
        current = best.get(hit.chapter_id)
        if current is None or scored.distance < current.distance:
            best[hit.chapter_id] = scored
    return list(best.values())


def _rescore(hits: list[ScoredHit], floor: int) -> list[ScoredHit]:
    if floor == SCORE_FLOOR:
        return hits
    return [score_hit(h.hit, floor=floor) for h in hits]


def aggregate(
    hits: Sequence[RawHit],
    k_per_book: int = DEFAULT_K_PER_BOOK,
    max_books: int = DEFAULT_MAX_BOOKS,
    min_avg_score: int = DEFAULT_MIN_AVG_SCORE,
    score_floor: int = SCORE_FLOOR,
) -> list[BookRanking]:
    """
    Group scored hits by book and rank the books.

    - each book keeps its top ``k_per_book`` chapters (score desc, chapter id asc)
    - a book's average is over exactly those retained chapters, so several strong
      chapters beat one strong chapter buried among weak ones
    - books averaging below ``min_avg_score`` are dropped
    - order is (average desc, book id asc), truncated to ``max_books``
    """
    scored = _rescore(deduplicate_hits(hits), score_floor)
    return rank_books(scored, k_per_book, max_books, min_avg_score)


def rank_books(
    scored: Sequence[ScoredHit],
    k_per_book: int = DEFAULT_K_PER_BOOK,
    max_books: int = DEFAULT_MAX_BOOKS,
    min_avg_score: int = DEFAULT_MIN_AVG_SCORE,
) -> list[BookRanking]:
    """Grouping and ranking over already scored, de-duplicated hits."""
    if k_per_book <= 0 or max_books <= 0:
        return []

    by_book: dict[int, list[ScoredHit]] = {}
    for h in scored:
        by_book.setdefault(h.book_id, []).append(h)

    rankings: list[BookRanking] = []
    for book_id, group in by_book.items():
        group.sort(key=lambda h: (-h.score, h.chapter_id))
        top = tuple(group[:k_per_book])
        average = sum(h.score for h in top) / len(top)
        if average < min_avg_score:
            continue
        rankings.append(BookRanking(book_id=book_id, top_hits=top, average_score=average))

    rankings.sort(key=lambda r: (-r.average_score, r.book_id))
    return rankings[:max_books]


def cap_total_chapters(rankings: Sequence[BookRanking], max_chapters: int) -> list[BookRanking]:
    """
    Keep whole books, in order, while their chapters fit into ``max_chapters``.

    Never reorders and never splits a book, so every kept average stays exact.
    The first book is always kept when ``max_chapters`` is positive.
    """
    if max_chapters <= 0:
        return []
    kept: list[BookRanking] = []
    used = 0
    for r in rankings:
        if kept and used + len(r.top_hits) > max_chapters:
            break
        kept.append(r)
        used += len(r.top_hits)
    return kept
