from .base import BaseTextSplitter
from .recursive import (
    DEFAULT_CHUNK_OVERLAP,
    DEFAULT_CHUNK_SIZE,
    MARKDOWN_SEPARATORS,
    PLAIN_TEXT_SEPARATORS,
    RecursiveCharacterSplitter,
)

TextSplitter = RecursiveCharacterSplitter


def create_splitter(
    source: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> BaseTextSplitter:
    """Create a splitter with the separator list suited to the source format."""
    separators = MARKDOWN_SEPARATORS if source == "markdown" else PLAIN_TEXT_SEPARATORS
    return RecursiveCharacterSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        separators=separators,
    )


__all__ = [
    "BaseTextSplitter",
    "RecursiveCharacterSplitter",
    "TextSplitter",
    "create_splitter",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_CHUNK_OVERLAP",
    "MARKDOWN_SEPARATORS",
    "PLAIN_TEXT_SEPARATORS",
]
