from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from summify_search.domain.models import RawHit

__all__ = ["RawHit", "VectorStorePort"]


@runtime_checkable
class VectorStorePort(Protocol):
    """Vector-distance ordered chapter query (``ORDER BY embedding <=> :v LIMIT :n``).

    ``search`` raises ``VectorIndexUnavailable`` when the index is absent or fails;
    the orchestrator then falls back to lexical matching.
    """

    def upsert(
        self,
        ids: Sequence[int],
        vectors: Sequence[Sequence[float]],
        payloads: Sequence[dict[str, object]],
    ) -> None: ...

    def search(self, query_vector: Sequence[float], top_k: int = 20) -> list[RawHit]: ...

    def ensure_collection(self, name: str, dim: int) -> None: ...
