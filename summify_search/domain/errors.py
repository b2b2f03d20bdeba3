"""Domain errors (typed) for the chapter search pipeline.

Adapters translate third-party failures into these before they reach the
application layer.
Every error carries a stable ``code`` that the interface layer exposes.
"""

from dataclasses import dataclass


class DomainError(Exception):
    """Base class for domain-specific errors."""

    code = "DomainError"


class InvalidQuery(DomainError):
    """Query text is empty or otherwise unusable."""

    code = "InvalidQuery"


@dataclass(frozen=True)
class UpgradeRequired(DomainError):
    """Monthly query allowance exhausted for a finite plan.

    Not a failure of the system: a terminal policy outcome with an actionable payload.
    """

    message: str
    plan: str
    queries_used: int
    monthly_limit: int
    suggested_plan: str | None = None

    code = "UpgradeRequired"

    def __str__(self) -> str:
        return self.message


class SearchFailed(DomainError):
    """Storage layer unreachable; no alternative data source exists."""

    code = "SearchFailed"


class StorageError(DomainError):
    """Chapter/book storage backend failed or is misconfigured."""

    code = "StorageError"


# Degradable errors: always resolved via a fallback path, never surfaced.
class EmbeddingUnavailable(DomainError):
    """Embedding provider unreachable, rate-limited, timed out or unconfigured."""

    code = "EmbeddingUnavailable"


class VectorIndexUnavailable(DomainError):
    """Vector index absent or the vector-distance query failed."""

    code = "VectorIndexUnavailable"


class LLMError(DomainError):
    """LLM backend failed or is misconfigured."""

    code = "LLMError"


@dataclass(frozen=True)
class EnrichmentParseError(DomainError):
    """LLM answered, but not with the expected JSON object."""

    detail: str = ""

    code = "EnrichmentParseError"

    def __str__(self) -> str:
        return self.detail


class CacheError(DomainError):
    """Cache backend failed; callers treat it as a miss."""

    code = "CacheError"
