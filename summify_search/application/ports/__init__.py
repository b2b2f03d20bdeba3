"""Application ports package.

Re-exports the ports the orchestrator and adapters are written against.
"""

from summify_search.application.ports.cache_port import CachePort, CacheStats
from summify_search.application.ports.chapter_repository_port import ChapterRepositoryPort
from summify_search.application.ports.clock_port import ClockPort
from summify_search.application.ports.embedding_port import EmbeddingPort
from summify_search.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from summify_search.application.ports.telemetry_port import NoopTelemetry, TelemetryPort
from summify_search.application.ports.usage_counter_port import UsageCounterPort
from summify_search.application.ports.vector_store_port import RawHit, VectorStorePort

__all__ = [
    "CachePort",
    "CacheStats",
    "ChapterRepositoryPort",
    "ClockPort",
    "EmbeddingPort",
    "LLMPort",
    "ChatMessage",
    "LLMResponse",
    "NoopTelemetry",
    "TelemetryPort",
    "UsageCounterPort",
    "RawHit",
    "VectorStorePort",
]
