from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingPort(Protocol):
    """Turns text into a fixed-dimension vector.

    Implementations raise ``EmbeddingUnavailable`` when the provider is unreachable,
    rate-limited, timed out or unconfigured; callers fall back, never abort.
    """

    dimension: int

    def embed_texts(self, texts: Sequence[str]) -> list[list[float]]: ...
    def embed_query(self, text: str) -> list[float]: ...
