import logging
from pathlib import Path
from typing import Any, Iterable

from docrag.config import get_config_value
from docrag.loaders import SUPPORTED_EXTENSIONS, get_extractor_for_file
from docrag.models import Chunk, ChunkMetadata, DocumentListing, ProjectFile, utc_now
from docrag.splitters import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    BaseTextSplitter,
    create_splitter,
)
from docrag.stores import BaseVectorStore, DocumentLedger

logger = logging.getLogger(__name__)

PROJECT_SOURCE = "project"


class IngestionPipeline:
    """Pipeline for turning documents into chunks and storing them.

    Every public ingest call hands the vector store a single batch, so a
    failure part-way through leaves nothing from that call behind.
    """

    def __init__(
        self,
        vector_store: BaseVectorStore,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
    ):
        self.vector_store = vector_store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

        # Built eagerly so bad chunking parameters fail before any ingestion.
        self._splitters: dict[str, BaseTextSplitter] = {
            source: create_splitter(source, chunk_size, chunk_overlap)
            for source in ("txt", "markdown")
        }

    @classmethod
    def from_config(
        cls, config: dict[str, Any], vector_store: BaseVectorStore
    ) -> "IngestionPipeline":
        """Create pipeline from configuration dictionary."""
        return cls(
            vector_store=vector_store,
            chunk_size=get_config_value(
                config, "ingestion.chunk_size", DEFAULT_CHUNK_SIZE
            ),
            chunk_overlap=get_config_value(
                config, "ingestion.chunk_overlap", DEFAULT_CHUNK_OVERLAP
            ),
        )

    def _splitter_for(self, source: str) -> BaseTextSplitter:
        return self._splitters["markdown" if source == "markdown" else "txt"]

    def split_document(self, text: str, filename: str, source: str) -> list[Chunk]:
        """Split one document's text into chunks sharing one upload timestamp."""
        if not text.strip():
            logger.warning(f"No text content in {filename}, skipping")
            return []

        uploaded_at = utc_now()
        return [
            Chunk(
                content=piece,
                metadata=ChunkMetadata(
                    source=source, filename=filename, uploaded_at=uploaded_at
                ),
            )
            for piece in self._splitter_for(source).split_text(text)
        ]

    def ingest_chunks(self, chunks: list[Chunk]) -> int:
        if not chunks:
            return 0
        return self.vector_store.add_documents(chunks)

    def ingest_upload(self, filename: str, data: bytes) -> int:
        """Extract, split and store one uploaded file.

        Raises:
            UnsupportedFormat: For PDF or unrecognized extensions.
        """
        extractor = get_extractor_for_file(filename)
        text = extractor.extract_text(data)
        chunks = self.split_document(text, filename, extractor.source)
        count = self.ingest_chunks(chunks)
        logger.info(f"Ingested {filename}: {count} chunks")
        return count

    def ingest_file(self, file_path: Path) -> int:
        return self.ingest_upload(file_path.name, file_path.read_bytes())

    def ingest_project_files(self, files: Iterable[ProjectFile]) -> int:
        """Store project files as one batch, chunked with plain-text separators."""
        chunks: list[Chunk] = []
        file_count = 0
        for project_file in files:
            chunks.extend(
                self.split_document(project_file.content, project_file.path, PROJECT_SOURCE)
            )
            file_count += 1

        count = self.ingest_chunks(chunks)
        logger.info(f"Embedded {file_count} project files into {count} chunks")
        return count

    def discover_files(self, directory: Path) -> list[Path]:
        """Discover all supported files under a directory, recursively."""
        files = [
            path
            for path in directory.rglob("*")
            if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS
        ]
        return sorted(files)

    def list_documents(self) -> DocumentListing:
        chunks = self.vector_store.get_all()
        return DocumentListing(
            files=DocumentLedger(chunks).group_by_filename(),
            total_chunks=len(chunks),
        )

    def clear_all(self) -> bool:
        self.vector_store.clear()
        logger.info("All documents cleared")
        return True
