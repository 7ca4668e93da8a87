from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, Field

from .chunk import SearchResult


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class Completion(BaseModel):
    """Text returned by a non-streaming generation call."""

    text: str
    usage: TokenUsage = Field(default_factory=TokenUsage)


class RAGResponse(BaseModel):
    answer: str
    sources: list[SearchResult]
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)


class StreamEvent(BaseModel):
    """One event of a streamed answer.

    ``sources`` carries the retrieved results, ``answer`` a text fragment and
    ``done`` an empty string.
    """

    type: Literal["sources", "answer", "done"]
    data: Union[list[SearchResult], str]


class FileSummary(BaseModel):
    filename: str
    chunk_count: int
    last_uploaded_at: datetime


class DocumentListing(BaseModel):
    files: list[FileSummary] = Field(default_factory=list)
    total_chunks: int = 0
