"""Application settings with environment-driven configuration.

The only module that reads the environment; every other layer receives
settings through the composition root.
"""

import os
from dataclasses import dataclass, field


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppSettings:
    """Application settings loaded from environment variables.

    This is the ONLY place where environment variables are read.

    Backends:
    - vector_backend: "sqlite" (brute force over stored chapter embeddings) |
      "qdrant" | "none" (lexical search only)
    - embedding_backend: "openai" (hosted) | "local" (sentence-transformers) | "none"
    - cache_backend: "memory" | "redis"
    """

    # ===== Storage =====
    db_path: str = field(default_factory=lambda: os.getenv("SUMMIFY_DB_PATH", "var/summify.db"))

    # ===== Vector Store Configuration =====
    vector_backend: str = field(
        default_factory=lambda: os.getenv("VECTOR_BACKEND", "sqlite").lower()
    )
    qdrant_url: str = field(
        default_factory=lambda: os.getenv("QDRANT_URL", "http://localhost:6333")
    )
    qdrant_api_key: str = field(default_factory=lambda: os.getenv("QDRANT_API_KEY", ""))
    qdrant_timeout_s: int = field(default_factory=lambda: int(os.getenv("QDRANT_TIMEOUT_S", "10")))
    collection: str = field(default_factory=lambda: os.getenv("VECTOR_COLLECTION", "chapters"))

    # ===== Embedding Configuration =====
    embedding_backend: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_BACKEND", "openai").lower()
    )
    embedding_model: str = field(
        default_factory=lambda: os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
    )
    embedding_dim: int = field(default_factory=lambda: int(os.getenv("EMBEDDING_DIM", "1536")))
    local_embedding_model: str = field(
        default_factory=lambda: os.getenv(
            "LOCAL_EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
        )
    )
    embedding_device: str = field(default_factory=lambda: os.getenv("EMBEDDING_DEVICE", "cpu"))
    # Supported: "cpu" | "cuda" | "mps"
    embedding_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("EMBEDDING_TIMEOUT_S", "10"))
    )

    # ===== LLM Configuration =====
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    # Empty = LLM enrichment and hosted embeddings unconfigured (fallback paths only)
    llm_base_url: str = field(default_factory=lambda: os.getenv("LLM_BASE_URL", ""))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))
    enrichment_timeout_s: float = field(
        default_factory=lambda: float(os.getenv("ENRICHMENT_TIMEOUT_S", "15"))
    )
    enrichment_max_workers: int = field(
        default_factory=lambda: int(os.getenv("ENRICHMENT_MAX_WORKERS", "4"))
    )

    # ===== Cache Configuration =====
    cache_backend: str = field(default_factory=lambda: os.getenv("CACHE_BACKEND", "memory").lower())
    redis_url: str = field(
        default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0")
    )
    embedding_cache_ttl_s: int = field(
        default_factory=lambda: int(os.getenv("EMBEDDING_CACHE_TTL_S", "0"))
    )
    # 0 = never expire
    embedding_cache_max_entries: int = field(
        default_factory=lambda: int(os.getenv("EMBEDDING_CACHE_MAX_ENTRIES", "10000"))
    )
    enrichment_cache_ttl_s: int = field(
        default_factory=lambda: int(os.getenv("ENRICHMENT_CACHE_TTL_S", "604800"))
    )
    enrichment_cache_max_entries: int = field(
        default_factory=lambda: int(os.getenv("ENRICHMENT_CACHE_MAX_ENTRIES", "50000"))
    )

    # ===== Aggregation / Scoring =====
    results_per_book: int = field(default_factory=lambda: int(os.getenv("RESULTS_PER_BOOK", "3")))
    max_books: int = field(default_factory=lambda: int(os.getenv("MAX_BOOKS", "12")))
    min_average_score: int = field(
        default_factory=lambda: int(os.getenv("MIN_AVERAGE_SCORE", "10"))
    )
    lexical_candidate_limit: int = field(
        default_factory=lambda: int(os.getenv("LEXICAL_CANDIDATE_LIMIT", "20"))
    )
    vector_candidate_limit: int = field(
        default_factory=lambda: int(os.getenv("VECTOR_CANDIDATE_LIMIT", "20"))
    )
    score_floor: int = field(default_factory=lambda: int(os.getenv("SCORE_FLOOR", "25")))

    # ===== Telemetry Configuration =====
    telemetry_enabled: bool = field(default_factory=lambda: _flag("TELEMETRY_ENABLED"))
    otlp_endpoint: str = field(default_factory=lambda: os.getenv("OTLP_ENDPOINT", ""))
    telemetry_environment: str = field(
        default_factory=lambda: os.getenv("TELEMETRY_ENVIRONMENT", "production")
    )

    # ===== Logging =====
    log_level: str = field(default_factory=lambda: os.getenv("SUMMIFY_LOG_LEVEL", "INFO").upper())
    log_file: str = field(default_factory=lambda: os.getenv("SUMMIFY_LOG_FILE", ""))
