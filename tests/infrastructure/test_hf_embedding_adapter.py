import pytest

from summify_search.domain.errors import EmbeddingUnavailable
from summify_search.infrastructure.embeddings import hf_sentence_transformers as hf


class _FakeST:
    loads = 0

    def __init__(self, model_name, device="cpu", local_files_only=False):
        type(self).loads += 1
        self.model_name = model_name

    def encode(self, inputs, normalize_embeddings=True, convert_to_numpy=True, show_progress_bar=False):
        if isinstance(inputs, str):
            return [1.0, 0.0, 0.0]
        return [[float(len(t)), 0.0, 0.0] for t in inputs]


class _BrokenST:
    def __init__(self, *_args, **_kwargs):
        raise OSError("model not found")


def test_embeds_with_lazily_loaded_model(monkeypatch):
    _FakeST.loads = 0
    monkeypatch.setattr(hf, "SentenceTransformer", _FakeST)
    adapter = hf.HFEmbeddingAdapter(dimension=3)

    assert adapter.embed_query("leadership") == [1.0, 0.0, 0.0]
    assert adapter.embed_texts(["ab", "abcd"]) == [[2.0, 0.0, 0.0], [4.0, 0.0, 0.0]]
    assert _FakeST.loads == 1


def test_missing_library_is_unavailable(monkeypatch):
    monkeypatch.setattr(hf, "SentenceTransformer", None)
    with pytest.raises(EmbeddingUnavailable):
        hf.HFEmbeddingAdapter().embed_query("x")


def test_model_load_failure_is_unavailable(monkeypatch):
    monkeypatch.setattr(hf, "SentenceTransformer", _BrokenST)
    with pytest.raises(EmbeddingUnavailable):
        hf.HFEmbeddingAdapter().embed_texts(["x"])
