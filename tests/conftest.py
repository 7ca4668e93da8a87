import math
import threading
import zlib
from pathlib import Path
from typing import Any, Iterator, Optional

import pytest

from docrag.adapters.base import BaseEmbedder, BaseLLM
from docrag.models import Completion, TokenUsage
from docrag.service import RAGService
from docrag.stores import FAISSVectorStore


class MockEmbedder(BaseEmbedder):
    """Deterministic embedder hashing character trigrams into a unit vector."""

    def __init__(self, dimension: int = 64, **kwargs: Any):
        super().__init__("mock-embedder", **kwargs)
        self._dimension = dimension
        self.batch_calls = 0
        self.query_calls = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    def _vector(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        lowered = text.lower()
        grams = [lowered[i : i + 3] for i in range(max(len(lowered) - 2, 1))]
        for gram in grams:
            vector[zlib.crc32(gram.encode("utf-8")) % self._dimension] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]

    def embed(self, text: str) -> list[float]:
        self.query_calls += 1
        return self._vector(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls += 1
        return [self._vector(text) for text in texts]


class FailingEmbedder(MockEmbedder):
    """Embedder whose batch calls fail after the first `succeed` calls."""

    def __init__(self, dimension: int = 64, succeed: int = 0, **kwargs: Any):
        super().__init__(dimension, **kwargs)
        self.succeed = succeed

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if self.batch_calls >= self.succeed:
            self.batch_calls += 1
            raise RuntimeError("embedding service unavailable")
        return super().embed_batch(texts)


class GatedEmbedder(MockEmbedder):
    """Embedder whose next batch call blocks until `release` is set."""

    def __init__(self, dimension: int = 64, **kwargs: Any):
        super().__init__(dimension, **kwargs)
        self.entered = threading.Event()
        self.release = threading.Event()
        self._armed = False

    def arm(self) -> None:
        self._armed = True

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if self._armed:
            self._armed = False
            self.entered.set()
            self.release.wait(timeout=5)
        return super().embed_batch(texts)


class MockLLM(BaseLLM):
    """Scripted LLM that records how its stream is consumed."""

    def __init__(
        self,
        response: str = "<answer>Mock answer</answer>\n<sources></sources>",
        fragments: Optional[list[str]] = None,
        model: str = "mock-llm",
        **kwargs: Any,
    ):
        super().__init__(model, **kwargs)
        self.response = response
        self.fragments = fragments if fragments is not None else ["Mock ", "streamed ", "answer"]
        self.prompts: list[str] = []
        self.streams_opened = 0
        self.streams_closed = 0
        self.fragments_yielded = 0

    @property
    def supports_streaming(self) -> bool:
        return True

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return self.complete(prompt, **kwargs).text

    def complete(self, prompt: str, **kwargs: Any) -> Completion:
        self.prompts.append(prompt)
        return Completion(
            text=self.response,
            usage=TokenUsage(input_tokens=120, output_tokens=30),
        )

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        self.prompts.append(prompt)
        self.streams_opened += 1
        try:
            for fragment in self.fragments:
                self.fragments_yielded += 1
                yield fragment
        finally:
            self.streams_closed += 1


class FailingLLM(MockLLM):
    def complete(self, prompt: str, **kwargs: Any) -> Completion:
        raise RuntimeError("rate limited")

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        yield "partial "
        raise RuntimeError("connection reset")


@pytest.fixture
def mock_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=64)


@pytest.fixture
def mock_llm() -> MockLLM:
    return MockLLM()


@pytest.fixture
def snapshot_dir(tmp_path: Path) -> Path:
    return tmp_path / "storage" / "vectorstore"


@pytest.fixture
def vector_store(snapshot_dir: Path, mock_embedder: MockEmbedder) -> FAISSVectorStore:
    store = FAISSVectorStore(embedder=mock_embedder, snapshot_dir=snapshot_dir)
    store.initialize()
    return store


@pytest.fixture
def service(vector_store: FAISSVectorStore, mock_llm: MockLLM) -> RAGService:
    return RAGService.from_components(mock_llm, vector_store)


@pytest.fixture
def temp_config(tmp_path: Path) -> Path:
    config_content = """
[embedding]
provider = "ollama"
model = "nomic-embed-text"

[llm]
provider = "ollama"
model = "llama3"

[storage]
directory = "${DOCRAG_TEST_STORAGE:-data}"

[ingestion]
chunk_size = 500
chunk_overlap = 50

[retrieval]
top_k = 3
search_limit = 7

[index]
ef_search = 32
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path
