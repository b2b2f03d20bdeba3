from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, cast

from summify_search.application.ports.embedding_port import EmbeddingPort
from summify_search.domain.errors import EmbeddingUnavailable

# Lazy import for testability (allow monkeypatching fake SentenceTransformer)
SentenceTransformer: Any | None
try:  # pragma: no cover - exercised via tests with monkeypatch
    from sentence_transformers import SentenceTransformer as _SentenceTransformer
except Exception:  # noqa: BLE001
    SentenceTransformer = None
else:  # pragma: no cover - exercised in integration
    SentenceTransformer = _SentenceTransformer


@dataclass
class HFEmbeddingAdapter(EmbeddingPort):
    """Local sentence-transformers embeddings (384-d MiniLM by default)."""

    model_name: str = "sentence-transformers/all-MiniLM-L6-v2"
    device: str = "cpu"
    dimension: int = 384
    local_files_only: bool = False
    _model: Any | None = None

    def _ensure_model(self) -> Any:
        if self._model is not None:
            return self._model
        if SentenceTransformer is None:
            raise EmbeddingUnavailable("sentence-transformers not installed.")
        try:
            self._model = SentenceTransformer(
                self.model_name,
                device=self.device,
                local_files_only=self.local_files_only,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingUnavailable(
                f"Failed to load embedding model '{self.model_name}': {ex}"
            ) from ex
        return self._model

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        model = self._ensure_model()
        try:
            raw_vectors = model.encode(
                list(texts),
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingUnavailable(f"Embedding texts failed: {ex}") from ex
        vectors = cast(Sequence[Sequence[float]], raw_vectors)
        return [list(map(float, vec)) for vec in vectors]

    def embed_query(self, text: str) -> list[float]:
        model = self._ensure_model()
        try:
            raw_vector = model.encode(
                text,
                normalize_embeddings=True,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as ex:  # noqa: BLE001
            raise EmbeddingUnavailable(f"Embedding query failed: {ex}") from ex
        return [float(x) for x in cast(Sequence[float], raw_vector)]
