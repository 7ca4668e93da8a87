import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from docrag.adapters import BaseEmbedder, BaseLLM
from docrag.config import find_config_path, load_config
from docrag.models import (
    DocumentListing,
    ProjectFile,
    RAGResponse,
    SearchResult,
    StreamEvent,
)
from docrag.pipelines import (
    IngestionPipeline,
    RetrievalPipeline,
    create_embedder_from_config,
    create_llm_from_config,
    create_vector_store_from_config,
)
from docrag.stores import BaseVectorStore

logger = logging.getLogger(__name__)


class RAGService:
    """Document question-answering service.

    Owns one vector store and the ingestion and retrieval pipelines built on
    it. The store is initialized on construction, so every method can be
    called right away.
    """

    def __init__(
        self,
        vector_store: BaseVectorStore,
        ingestion: IngestionPipeline,
        retrieval: RetrievalPipeline,
    ):
        self.vector_store = vector_store
        self.ingestion = ingestion
        self.retrieval = retrieval
        self.vector_store.initialize()

    @classmethod
    def from_components(
        cls,
        llm: BaseLLM,
        vector_store: BaseVectorStore,
        config: Optional[dict[str, Any]] = None,
    ) -> "RAGService":
        config = config or {}
        return cls(
            vector_store=vector_store,
            ingestion=IngestionPipeline.from_config(config, vector_store),
            retrieval=RetrievalPipeline.from_config(config, llm, vector_store),
        )

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        config_path: Path,
        embedder: Optional[BaseEmbedder] = None,
        llm: Optional[BaseLLM] = None,
    ) -> "RAGService":
        """Create the service from configuration dictionary."""
        embedder = embedder or create_embedder_from_config(config)
        llm = llm or create_llm_from_config(config)
        vector_store = create_vector_store_from_config(config, config_path, embedder)

        logger.info(
            f"Using embedder {embedder.model} and LLM {llm.model}, "
            f"snapshot at {getattr(vector_store, 'snapshot_dir', None)}"
        )
        return cls.from_components(llm, vector_store, config)

    def ingest(self, files: Iterable[ProjectFile]) -> int:
        return self.ingestion.ingest_project_files(files)

    def ingest_upload(self, filename: str, data: bytes) -> int:
        return self.ingestion.ingest_upload(filename, data)

    def search(self, query: str, limit: Optional[int] = None) -> list[SearchResult]:
        return self.retrieval.search(query, limit)

    def query(self, question: str) -> RAGResponse:
        return self.retrieval.query(question)

    def stream_query(self, question: str) -> Iterator[StreamEvent]:
        return self.retrieval.stream_query(question)

    def list_documents(self) -> DocumentListing:
        return self.ingestion.list_documents()

    def clear_all(self) -> bool:
        return self.ingestion.clear_all()


def get_rag_service(config_path: Optional[Path] = None) -> RAGService:
    """Create a RAG service from config.

    Args:
        config_path: Path to configuration file; searched for when omitted.
    """
    config_path = find_config_path(config_path)
    config = load_config(config_path)
    return RAGService.from_config(config, config_path)
