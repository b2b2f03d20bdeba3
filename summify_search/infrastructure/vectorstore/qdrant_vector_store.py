from collections.abc import Sequence
from dataclasses import dataclass, field
from importlib import import_module
from typing import Any

from summify_search.application.ports.vector_store_port import VectorStorePort
from summify_search.domain.errors import VectorIndexUnavailable
from summify_search.domain.models import MetricKind, RawHit
from summify_search.domain.services.lexical_matching import WEAK_CANDIDATE_DISTANCE


@dataclass
class QdrantVectorStoreAdapter(VectorStorePort):
    """Chapter embeddings in a Qdrant collection (cosine).

    Point ids are chapter ids; the payload carries ``book_id``. Qdrant reports
    cosine similarity, so hits are tagged ``MetricKind.OVERLAP``.
    """

    url: str = "http://localhost:6333"
    api_key: str | None = None
    collection: str = "chapters"
    timeout_s: int = 10
    client: Any | None = field(default=None, repr=False)

    def _cli(self) -> Any:
        if self.client is not None:
            return self.client
        try:
            client_mod = import_module("qdrant_client")
            self.client = client_mod.QdrantClient(
                url=self.url, api_key=self.api_key or None, timeout=self.timeout_s
            )
        except Exception as ex:  # noqa: BLE001
            raise VectorIndexUnavailable(f"Qdrant init failed: {ex}") from ex
        return self.client

    def ensure_collection(self, name: str, dim: int) -> None:
        self.collection = name
        cli = self._cli()
        try:
            models_mod = import_module("qdrant_client.models")
            if cli.collection_exists(collection_name=name):
                info = cli.get_collection(collection_name=name)
                size = info.config.params.vectors.size
                if size != dim:
                    raise VectorIndexUnavailable(
                        f"Collection '{name}' exists with dimension {size} != {dim}"
                    )
                return
            cli.create_collection(
                collection_name=name,
                vectors_config=models_mod.VectorParams(
                    size=dim, distance=models_mod.Distance.COSINE
                ),
            )
        except VectorIndexUnavailable:
            raise
        except Exception as ex:  # noqa: BLE001
            raise VectorIndexUnavailable(f"ensure_collection '{name}' failed: {ex}") from ex

    def upsert(
        self,
        ids: Sequence[int],
        vectors: Sequence[Sequence[float]],
        payloads: Sequence[dict[str, object]],
    ) -> None:
        cli = self._cli()
        try:
            models_mod = import_module("qdrant_client.models")
            points = [
                models_mod.PointStruct(id=int(i), vector=list(v), payload=dict(p))
                for i, v, p in zip(ids, vectors, payloads, strict=True)
            ]
            cli.upsert(collection_name=self.collection, points=points)
        except Exception as ex:  # noqa: BLE001
            raise VectorIndexUnavailable(f"Upsert failed: {ex}") from ex

    def search(self, query_vector: Sequence[float], top_k: int = 20) -> list[RawHit]:
        cli = self._cli()
        try:
            rs: Any = cli.query_points(
                collection_name=self.collection,
                query=list(query_vector),
                limit=top_k,
                with_payload=True,
            )
            return [_to_hit(p) for p in rs.points]
        except Exception as ex:  # noqa: BLE001
            raise VectorIndexUnavailable(f"Search failed: {ex}") from ex


def _to_hit(point: Any) -> RawHit:
    book_id = int((point.payload or {}).get("book_id", 0))
    if point.score is None:
        return RawHit(
            chapter_id=int(point.id),
            book_id=book_id,
            metric=WEAK_CANDIDATE_DISTANCE,
            kind=MetricKind.DISTANCE,
        )
    return RawHit(
        chapter_id=int(point.id), book_id=book_id, metric=float(point.score), kind=MetricKind.OVERLAP
    )
