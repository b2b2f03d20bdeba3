from types import SimpleNamespace

import pytest

from summify_search.domain.errors import VectorIndexUnavailable
from summify_search.domain.models import MetricKind
from summify_search.domain.services.lexical_matching import WEAK_CANDIDATE_DISTANCE
from summify_search.infrastructure.vectorstore.qdrant_vector_store import (
    QdrantVectorStoreAdapter,
)


class FakeQdrant:
    def __init__(self, points=None, error=None):
        self.points = points or []
        self.error = error
        self.queries = []

    def query_points(self, **kwargs):
        self.queries.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(points=self.points)


def test_search_maps_similarity_to_overlap_hits():
    client = FakeQdrant(
        points=[
            SimpleNamespace(id=7, score=0.92, payload={"book_id": 3}),
            SimpleNamespace(id=8, score=None, payload=None),
        ]
    )
    store = QdrantVectorStoreAdapter(collection="chapters", client=client)

    hits = store.search([0.1, 0.2], top_k=5)

    assert client.queries[0]["collection_name"] == "chapters"
    assert client.queries[0]["limit"] == 5
    assert (hits[0].chapter_id, hits[0].book_id, hits[0].kind) == (7, 3, MetricKind.OVERLAP)
    assert hits[0].metric == pytest.approx(0.92)
    assert hits[1].kind is MetricKind.DISTANCE
    assert hits[1].metric == WEAK_CANDIDATE_DISTANCE
    assert hits[1].book_id == 0


def test_search_failure_is_vector_index_unavailable():
    store = QdrantVectorStoreAdapter(client=FakeQdrant(error=ConnectionError("refused")))
    with pytest.raises(VectorIndexUnavailable):
        store.search([0.1])
