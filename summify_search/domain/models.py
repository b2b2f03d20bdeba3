# summify_search/domain/models.py
# Domain models must be pure (no I/O, no external libs)
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from summify_search.domain.errors import InvalidQuery
from summify_search.domain.types import Vector

SEARCH_TYPE_VECTOR = "ai_vector_search"
SEARCH_TYPE_SEMANTIC_FALLBACK = "enhanced_semantic_fallback"
SEARCH_TYPE_TEXT = "enhanced_text_search"


@dataclass(frozen=True)
class Query:
    """
    Immutable search query, one per request.

    - raw:        text exactly as the caller sent it
    - text:       trimmed, whitespace-collapsed form used for display and prompts
    - normalized: casefolded ``text``; the canonical matching and cache key
    """

    raw: str
    text: str
    normalized: str

    @classmethod
    def parse(cls, raw: str | None) -> Query:
        text = " ".join((raw or "").split())
        if not text:
            raise InvalidQuery("query must not be empty")
        return cls(raw=raw or "", text=text, normalized=text.casefold())

    @property
    def words(self) -> list[str]:
        return self.normalized.split(" ")

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def first_word(self) -> str:
        return self.words[0]


@dataclass(frozen=True)
class BookRecord:
    id: int
    title: str
    author: str = "Unknown Author"
    cover_url: str = ""
    isbn: str = ""


@dataclass(frozen=True)
class ChapterRecord:
    """Persisted chapter; read-only to the search core."""

    id: int
    book_id: int
    title: str
    text: str
    embedding: Vector | None = None
    chapter_number: int | None = None


@dataclass(frozen=True)
class ChapterWithBook:
    """A chapter joined with its parent book, as the storage layer returns it."""

    chapter: ChapterRecord
    book: BookRecord


class MetricKind(str, Enum):
    DISTANCE = "distance"  # lower is better, 0 = identical
    OVERLAP = "overlap"  # higher is better, 1 = full overlap / similarity


@dataclass(frozen=True)
class RawHit:
    """Transient match produced by a matcher; never persisted."""

    chapter_id: int
    book_id: int
    metric: float
    kind: MetricKind = MetricKind.DISTANCE


@dataclass(frozen=True)
class ScoredHit:
    hit: RawHit
    distance: float
    score: int

    @property
    def chapter_id(self) -> int:
        return self.hit.chapter_id

    @property
    def book_id(self) -> int:
        return self.hit.book_id


@dataclass(frozen=True)
class BookRanking:
    """Aggregator output for one book: its retained top chapters and their mean score."""

    book_id: int
    top_hits: tuple[ScoredHit, ...]
    average_score: float


@dataclass(frozen=True)
class EnrichedChapter:
    """
    A matched chapter with its explanation and topics.

    ``relevance_score`` is always the aggregator's score so book averages stay exact;
    an LLM's own opinion of relevance lands in ``ai_relevance_score``.
    """

    id: int
    title: str
    snippet: str
    relevance_score: int
    why_relevant: str
    key_topics: tuple[str, ...]
    principles: tuple[str, ...] = ()
    practical_applications: tuple[str, ...] = ()
    ai_relevance_score: int | None = None
    source: str = "fallback"  # "llm" | "fallback" | "cache"
    chapter_number: int | None = None


@dataclass(frozen=True)
class BookGroup:
    book_id: int
    title: str
    author: str
    cover_url: str
    isbn: str
    top_chapters: tuple[EnrichedChapter, ...]
    average_relevance: float


@dataclass(frozen=True)
class SearchResponse:
    query: str
    books: tuple[BookGroup, ...]
    search_type: str
    method: str
    processing_time_ms: int
    queries_used: int
    queries_remaining: int  # -1 means unbounded
    cached_enrichments: int = 0
    features: dict[str, bool] = field(default_factory=dict)

    @property
    def total_books(self) -> int:
        return len(self.books)

    @property
    def total_chapters(self) -> int:
        return sum(len(b.top_chapters) for b in self.books)

    @property
    def average_relevance(self) -> int:
        if not self.books:
            return 0
        return round(sum(b.average_relevance for b in self.books) / len(self.books))
