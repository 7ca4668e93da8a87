"""Anthropic Claude adapter using the official SDK."""

import os
from typing import Any, Iterator, Optional

import anthropic

from docrag.adapters.base import BaseLLM
from docrag.models import Completion, TokenUsage

DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 4096


class AnthropicLLM(BaseLLM):
    """Anthropic Messages API provider."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: Optional[int] = DEFAULT_MAX_TOKENS,
        timeout: float = 120.0,
        **kwargs: Any,
    ):
        api_key = kwargs.pop("api_key", None) or os.environ.get("ANTHROPIC_API_KEY")
        super().__init__(model, **kwargs)

        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
        self.temperature = temperature
        # The Messages API requires max_tokens on every request.
        self.max_tokens = max_tokens or DEFAULT_MAX_TOKENS

    @property
    def supports_streaming(self) -> bool:
        return True

    def _get_message_params(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
            "temperature": kwargs.get("temperature", self.temperature),
            "messages": [{"role": "user", "content": prompt}],
        }

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self.complete(prompt, **kwargs).text

    def complete(self, prompt: str, **kwargs: Any) -> Completion:
        message = self.client.messages.create(**self._get_message_params(prompt, **kwargs))
        text = "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
        return Completion(
            text=text,
            usage=TokenUsage(
                input_tokens=message.usage.input_tokens,
                output_tokens=message.usage.output_tokens,
            ),
        )

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        with self.client.messages.stream(**self._get_message_params(prompt, **kwargs)) as stream:
            for text in stream.text_stream:
                if text:
                    yield text
