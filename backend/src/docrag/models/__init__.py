from .chunk import (
    Chunk,
    ChunkMetadata,
    ChunkSource,
    ProjectFile,
    SearchResult,
    new_chunk_id,
    utc_now,
)
from .responses import (
    Completion,
    DocumentListing,
    FileSummary,
    RAGResponse,
    StreamEvent,
    TokenUsage,
)

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkSource",
    "Completion",
    "DocumentListing",
    "FileSummary",
    "ProjectFile",
    "RAGResponse",
    "SearchResult",
    "StreamEvent",
    "TokenUsage",
    "new_chunk_id",
    "utc_now",
]
