"""Chunk and retrieval models for docrag."""

import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ChunkSource = Literal["txt", "docx", "markdown", "project"]


def new_chunk_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChunkMetadata(BaseModel):
    """Provenance of a chunk.

    Attributes:
        source: Origin of the text ("txt", "docx", "markdown" or "project").
        filename: Uploaded file name or project-relative path.
        page: Reserved for paged formats. None of the enabled extractors
            (txt, markdown, docx) know page boundaries, so it stays None.
        uploaded_at: Ingestion time, serialized as ISO-8601.
    """

    model_config = ConfigDict(frozen=True)

    source: ChunkSource
    filename: str
    page: Optional[int] = None
    uploaded_at: datetime = Field(default_factory=utc_now)


class Chunk(BaseModel):
    """A bounded piece of a document; the unit of embedding and retrieval.

    The id is a random token, so re-ingesting a file with the same name never
    collides with earlier chunks.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_chunk_id)
    content: str = Field(min_length=1)
    metadata: ChunkMetadata


class SearchResult(BaseModel):
    """A retrieved chunk with its raw index distance (lower is closer)."""

    content: str
    metadata: ChunkMetadata
    score: float


class ProjectFile(BaseModel):
    """A project file submitted for indexing as whole-file text."""

    path: str
    content: str
