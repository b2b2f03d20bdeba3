from types import SimpleNamespace

import pytest

from summify_search.application.ports.llm_port import ChatMessage
from summify_search.domain.errors import EmbeddingUnavailable, LLMError
from summify_search.infrastructure.embeddings.openai_embedding_adapter import (
    OpenAIEmbeddingAdapter,
)
from summify_search.infrastructure.llm.openai_chat_adapter import OpenAIChatAdapter


class FakeCompletions:
    def __init__(self, content="{}", error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message, finish_reason="stop")],
            usage=SimpleNamespace(total_tokens=42),
        )


class FakeEmbeddings:
    def __init__(self, vectors, error=None):
        self.vectors = vectors
        self.error = error

    def create(self, model, input):  # noqa: A002
        if self.error is not None:
            raise self.error
        # Deliberately out of order; the adapter sorts by index.
        data = [SimpleNamespace(index=i, embedding=v) for i, v in enumerate(self.vectors)]
        return SimpleNamespace(data=list(reversed(data)))


def _chat_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_chat_json_mode_requests_json_object():
    completions = FakeCompletions(content='  {"whyRelevant": "x"}  ')
    llm = OpenAIChatAdapter(api_key="k", model="m", client=_chat_client(completions))

    resp = llm.chat([ChatMessage("user", "hi")], temperature=0.1, max_tokens=50, json_mode=True)

    assert resp.text == '{"whyRelevant": "x"}'
    assert resp.usage_tokens == 42
    call = completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert call["model"] == "m"
    assert call["messages"] == [{"role": "user", "content": "hi"}]
    assert call["max_tokens"] == 50


def test_chat_without_json_mode_sends_no_response_format():
    completions = FakeCompletions(content="plain")
    llm = OpenAIChatAdapter(api_key="k", client=_chat_client(completions))
    llm.chat([ChatMessage("user", "hi")])
    assert "response_format" not in completions.calls[0]


def test_chat_errors_become_llm_error():
    completions = FakeCompletions(error=TimeoutError("read timed out"))
    llm = OpenAIChatAdapter(api_key="k", client=_chat_client(completions))
    with pytest.raises(LLMError):
        llm.chat([ChatMessage("user", "hi")])


def test_chat_without_key_is_llm_error():
    with pytest.raises(LLMError):
        OpenAIChatAdapter(api_key="").chat([ChatMessage("user", "hi")])


def test_embeddings_sorted_by_index():
    client = SimpleNamespace(embeddings=FakeEmbeddings([[1.0, 0.0], [0.0, 1.0]]))
    adapter = OpenAIEmbeddingAdapter(api_key="k", dimension=2, client=client)

    assert adapter.embed_texts(["a", "b"]) == [[1.0, 0.0], [0.0, 1.0]]
    assert adapter.embed_query("a") == [1.0, 0.0]
    assert adapter.embed_texts([]) == []


def test_embedding_dimension_mismatch_is_unavailable():
    client = SimpleNamespace(embeddings=FakeEmbeddings([[1.0, 0.0, 0.0]]))
    adapter = OpenAIEmbeddingAdapter(api_key="k", dimension=2, client=client)
    with pytest.raises(EmbeddingUnavailable):
        adapter.embed_query("a")


def test_embedding_provider_failure_is_unavailable():
    client = SimpleNamespace(embeddings=FakeEmbeddings([], error=RuntimeError("429")))
    adapter = OpenAIEmbeddingAdapter(api_key="k", client=client)
    with pytest.raises(EmbeddingUnavailable):
        adapter.embed_query("a")


def test_embedding_without_key_is_unavailable():
    with pytest.raises(EmbeddingUnavailable):
        OpenAIEmbeddingAdapter(api_key="").embed_query("a")
