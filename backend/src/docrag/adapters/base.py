from abc import ABC, abstractmethod
from typing import Any, Iterator

from docrag.models import Completion
from docrag.adapters.utils import estimate_usage


class BaseEmbedder(ABC):
    """Abstract base class for embedding providers."""

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        pass

    @abstractmethod
    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed many texts; equivalent to calling embed() on each, in order."""
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        pass


class BaseLLM(ABC):
    """Abstract base class for LLM providers.

    Providers implement ``generate``. ``complete`` and ``stream`` have
    fallbacks for providers without usage reporting or incremental output:
    usage is estimated with tiktoken and the whole completion is streamed as a
    single fragment.
    """

    def __init__(self, model: str, **kwargs: Any):
        self.model = model
        self.kwargs = kwargs

    @abstractmethod
    def generate(self, prompt: str, **kwargs: Any) -> str:
        pass

    def complete(self, prompt: str, **kwargs: Any) -> Completion:
        text = self.generate(prompt, **kwargs)
        return Completion(text=text, usage=estimate_usage(prompt, text, self.model))

    def stream(self, prompt: str, **kwargs: Any) -> Iterator[str]:
        """Yield text fragments as the provider produces them.

        Closing the returned generator must release the underlying request.
        """
        yield self.generate(prompt, **kwargs)

    @property
    @abstractmethod
    def supports_streaming(self) -> bool:
        pass
