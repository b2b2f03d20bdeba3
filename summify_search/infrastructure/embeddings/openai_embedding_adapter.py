from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any

from summify_search.application.ports.embedding_port import EmbeddingPort
from summify_search.domain.errors import EmbeddingUnavailable


@dataclass
class OpenAIEmbeddingAdapter(EmbeddingPort):
    """Hosted embeddings via ``client.embeddings.create``.

    Any transport, auth, rate-limit or timeout failure becomes ``EmbeddingUnavailable``.
    """

    api_key: str
    model: str = "text-embedding-3-small"
    dimension: int = 1536
    base_url: str | None = None
    timeout_s: float = 10.0
    client: Any | None = None

    def _ensure_client(self) -> Any:
        if self.client is not None:
            return self.client
        if not self.api_key:
            raise EmbeddingUnavailable("embedding API key not configured")
        try:
            module = import_module("openai")
            self.client = module.OpenAI(
                api_key=self.api_key,
                base_url=self.base_url or None,
                timeout=self.timeout_s,
                max_retries=0,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingUnavailable(f"embedding client init failed: {ex}") from ex
        return self.client

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        client = self._ensure_client()
        try:
            resp: Any = client.embeddings.create(model=self.model, input=list(texts))
            rows = sorted(resp.data, key=lambda d: d.index)
            vectors = [[float(x) for x in row.embedding] for row in rows]
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingUnavailable(f"embedding request failed: {ex}") from ex
        for vec in vectors:
            if len(vec) != self.dimension:
                raise EmbeddingUnavailable(
                    f"model {self.model} returned {len(vec)}-d vector, expected {self.dimension}"
                )
        return vectors

    def embed_query(self, text: str) -> list[float]:
        return self.embed_texts([text])[0]
