from collections.abc import Sequence
from dataclasses import dataclass
from importlib import import_module
from typing import Any, cast

from summify_search.application.ports.llm_port import ChatMessage, LLMPort, LLMResponse
from summify_search.domain.errors import LLMError


@dataclass
class OpenAIChatAdapter(LLMPort):
    """Chat completions against OpenAI or any OpenAI-compatible server."""

    api_key: str
    model: str = "gpt-4o-mini"
    base_url: str | None = None  # None = provider default
    timeout_s: float = 15.0
    max_retries: int = 0
    client: Any | None = None

    def chat(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 400,
        json_mode: bool = False,
    ) -> LLMResponse:
        if not self.api_key and self.client is None:
            raise LLMError("LLM API key not configured")
        try:
            if self.client is None:
                module = import_module("openai")
                self.client = module.OpenAI(
                    api_key=self.api_key,
                    base_url=self.base_url or None,
                    timeout=self.timeout_s,
                    max_retries=self.max_retries,
                )
            payload: Any = [{"role": m.role, "content": m.content} for m in messages]
            kwargs: dict[str, Any] = {}
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}
            resp: Any = self.client.chat.completions.create(
                model=self.model,
                messages=cast(Any, payload),
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
            choice = resp.choices[0]
            usage = getattr(resp, "usage", None)
            return LLMResponse(
                text=(choice.message.content or "").strip(),
                finish_reason=choice.finish_reason or "stop",
                usage_tokens=getattr(usage, "total_tokens", None),
            )
        except Exception as ex:  # noqa: BLE001
            # Translate external errors to domain-specific errors
            raise LLMError(f"LLM communication failed: {ex}") from ex
