import os
from typing import Any, Optional

from openai import OpenAI

from docrag.adapters.base import BaseEmbedder
from docrag.adapters.utils import create_session_with_pooling

EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

# The embeddings endpoint accepts at most 2048 inputs per request.
OPENAI_MAX_BATCH = 2048
DEFAULT_BATCH_SIZE = 500
DEFAULT_OLLAMA_DIMENSION = 768
DEFAULT_TIMEOUT = 60.0


class OpenAIEmbedder(BaseEmbedder):
    """OpenAI embedding provider."""

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any,
    ):
        api_key = kwargs.pop("api_key", None) or os.environ.get("OPENAI_API_KEY")
        base_url = kwargs.pop("base_url", None)
        super().__init__(model, **kwargs)

        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self._dimension: Optional[int] = kwargs.get("dimensions")

    @property
    def dimension(self) -> int:
        return self._dimension or EMBEDDING_DIMENSIONS.get(self.model, 1536)

    def _create_embedding_params(self, input_data: str | list[str]) -> dict[str, Any]:
        params: dict[str, Any] = {"model": self.model, "input": input_data}
        if self._dimension is not None:
            params["dimensions"] = self._dimension
        return params

    def embed(self, text: str) -> list[float]:
        response = self.client.embeddings.create(**self._create_embedding_params(text))
        return response.data[0].embedding

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        embeddings: list[list[float]] = []
        for i in range(0, len(texts), OPENAI_MAX_BATCH):
            batch = texts[i : i + OPENAI_MAX_BATCH]
            response = self.client.embeddings.create(
                **self._create_embedding_params(batch)
            )
            embeddings.extend(item.embedding for item in response.data)
        return embeddings


class OllamaEmbedder(BaseEmbedder):
    """Ollama local embedding provider using the /api/embed batch endpoint."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._dimension = kwargs.get("dimension", DEFAULT_OLLAMA_DIMENSION)
        self._batch_size = batch_size
        self.session = create_session_with_pooling()

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> list[float]:
        return self._embed_request([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in request-sized slices to keep payloads bounded."""
        results: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            results.extend(self._embed_request(texts[i : i + self._batch_size]))
        return results

    def _embed_request(self, texts: list[str]) -> list[list[float]]:
        response = self.session.post(
            f"{self.base_url}/api/embed",
            json={"model": self.model, "input": texts},
            timeout=self.timeout,
        )
        response.raise_for_status()
        embeddings = response.json().get("embeddings", [])
        if len(embeddings) != len(texts):
            raise RuntimeError(
                f"Ollama returned {len(embeddings)} embeddings for {len(texts)} texts"
            )
        return embeddings
