from pathlib import Path
from typing import Any, Optional

from docrag.adapters.base import BaseEmbedder
from .base import BaseVectorStore
from .faiss import FAISSVectorStore
from .ledger import DocumentLedger

VectorStore = FAISSVectorStore


def create_vector_store(
    provider: str,
    embedder: BaseEmbedder,
    snapshot_dir: Optional[Path] = None,
    **kwargs: Any,
) -> BaseVectorStore:
    """Create a vector store instance based on provider.

    Args:
        provider: Provider name (currently only "faiss" supported)
        embedder: Embedding collaborator used for inserts and queries
        snapshot_dir: Directory holding the persisted index and ledger
        **kwargs: Index parameters (hnsw_m, ef_construction, ef_search)
    """
    if provider == "faiss":
        return FAISSVectorStore(embedder=embedder, snapshot_dir=snapshot_dir, **kwargs)
    raise ValueError(f"Unknown vector store provider: {provider}")


__all__ = [
    "BaseVectorStore",
    "DocumentLedger",
    "FAISSVectorStore",
    "VectorStore",
    "create_vector_store",
]
