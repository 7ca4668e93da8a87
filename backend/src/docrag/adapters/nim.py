"""NVIDIA NIM adapters using native LlamaIndex integrations."""

import os
from contextlib import closing
from typing import Any, Iterator, Optional

from llama_index.embeddings.nvidia import NVIDIAEmbedding
from llama_index.llms.nvidia import NVIDIA as NVIDIALLM

from docrag.adapters.base import BaseEmbedder, BaseLLM

NIM_BASE_URL = "https://integrate.api.nvidia.com/v1"


def _require_api_key(api_key: Optional[str]) -> str:
    api_key = api_key or os.environ.get("NVIDIA_API_KEY")
    if not api_key:
        raise ValueError("NVIDIA_API_KEY environment variable required for NIM provider")
    return api_key


class NIMEmbedder(BaseEmbedder):
    """NVIDIA NIM embedding provider.

    The dimension is probed with a test call unless given as ``dimension``.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: str = NIM_BASE_URL,
        truncate: str = "NONE",
        dimension: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self._client = NVIDIAEmbedding(
            model=model,
            base_url=base_url,
            api_key=_require_api_key(api_key),
            truncate=truncate,
        )
        self._dimension = dimension or len(self._client.get_query_embedding("test"))

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        return self._client.get_query_embedding(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return self._client.get_text_embedding_batch(texts)


class NIMLLM(BaseLLM):
    """NVIDIA NIM LLM provider; token usage is estimated locally."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: str = NIM_BASE_URL,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = NVIDIALLM(
            model=model,
            base_url=base_url,
            api_key=_require_api_key(api_key),
            temperature=temperature,
            max_tokens=max_tokens,
        )

    @property
    def supports_streaming(self) -> bool:
        return True

    def _call_kwargs(self, **kwargs: Any) -> dict[str, Any]:
        return {
            "temperature": kwargs.get("temperature", self._temperature),
            "max_tokens": kwargs.get("max_tokens", self._max_tokens),
        }

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self._client.complete(prompt, **self._call_kwargs(**kwargs)).text

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        with closing(
            self._client.stream_complete(prompt, **self._call_kwargs(**kwargs))
        ) as responses:
            for response in responses:
                if response.delta:
                    yield response.delta
