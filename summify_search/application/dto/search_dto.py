from dataclasses import dataclass

from summify_search.domain.services.aggregation import (
    DEFAULT_K_PER_BOOK,
    DEFAULT_MAX_BOOKS,
    DEFAULT_MIN_AVG_SCORE,
)
from summify_search.domain.services.lexical_matching import DEFAULT_CANDIDATE_LIMIT
from summify_search.domain.services.relevance_scoring import SCORE_FLOOR
from summify_search.domain.services.tiering import DEFAULT_PLAN, SearchMethod


@dataclass(frozen=True)
class SearchRequest:
    """One search call as the interface layer hands it to the orchestrator.

    ``usage_count`` is the number of queries already consumed this period. When a
    ``subscriber_id`` is given and a usage counter is wired, the counter's value
    takes precedence.
    """

    query: str
    plan: str = DEFAULT_PLAN
    usage_count: int = 0
    subscriber_id: str | None = None
    method: SearchMethod | None = None


@dataclass(frozen=True)
class SearchOptions:
    """Aggregation limits and time bounds applied to every request.

    - k_per_book / max_books / min_avg_score: Result Aggregator parameters
    - text_candidate_pool: rows fetched from storage before lexical classification
    - enrichment_timeout_s: bound on one LLM enrichment call
    """

    k_per_book: int = DEFAULT_K_PER_BOOK
    max_books: int = DEFAULT_MAX_BOOKS
    min_avg_score: int = DEFAULT_MIN_AVG_SCORE
    lexical_candidate_limit: int = DEFAULT_CANDIDATE_LIMIT
    vector_candidate_limit: int = DEFAULT_CANDIDATE_LIMIT
    text_candidate_pool: int = 200
    score_floor: int = SCORE_FLOOR
    enrichment_timeout_s: float = 15.0
    enrichment_max_workers: int = 4
