from abc import ABC, abstractmethod
from typing import Any, Iterable

from docrag.models import Chunk, SearchResult


class BaseVectorStore(ABC):
    """Abstract base class for vector stores."""

    def __init__(self, dimension: int, **kwargs: Any):
        self.dimension = dimension

    @abstractmethod
    def initialize(self) -> None:
        """Load persisted state, or start empty when there is none."""
        pass

    @abstractmethod
    def add_documents(self, chunks: Iterable[Chunk]) -> int:
        """Embed and store chunks; returns the number added."""
        pass

    @abstractmethod
    def search(self, query: str, k: int = 4) -> list[SearchResult]:
        """Return up to k results ordered from closest to farthest."""
        pass

    @abstractmethod
    def persist(self) -> None:
        """Write the current state to disk."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete all documents, on disk and in memory."""
        pass

    @abstractmethod
    def get_all(self) -> list[Chunk]:
        """Return stored chunks in insertion order."""
        pass

    @property
    @abstractmethod
    def count(self) -> int:
        """Return the number of stored chunks."""
        pass
