from typing import Optional, Sequence

from docrag.errors import ConfigurationError
from .base import BaseTextSplitter

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

PLAIN_TEXT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", " ", "")
MARKDOWN_SEPARATORS: tuple[str, ...] = (
    "\n## ",
    "\n### ",
    "\n\n",
    "\n",
    ". ",
    " ",
    "",
)


def _split_on(text: str, separator: str) -> list[str]:
    """Split on separator without dropping any characters.

    Header markers ("\\n## ") cut after their leading newlines so the header
    opens the next piece; every other separator stays at the end of the
    piece it terminates.
    """
    newlines = len(separator) - len(separator.lstrip("\n"))
    if separator[newlines:].startswith("#"):
        offset = newlines
    else:
        offset = len(separator)

    pieces = []
    start = 0
    idx = text.find(separator)
    while idx != -1:
        cut = idx + offset
        if cut > start:
            pieces.append(text[start:cut])
            start = cut
        idx = text.find(separator, idx + len(separator))
    pieces.append(text[start:])
    return [p for p in pieces if p]


class RecursiveCharacterSplitter(BaseTextSplitter):
    """Character splitter that recurses through a separator priority list.

    Text is cut on the highest-priority separator present; pieces that are
    still too long are cut again with the next separators, down to the empty
    separator which slices by length. Text no longer than ``chunk_size`` is a
    single chunk.

    Pieces are capped at ``chunk_size - chunk_overlap`` and merged greedily so
    each chunk carries at most that much new text, behind the last
    ``chunk_overlap`` characters of the previous chunk. Chunks therefore stay
    within ``chunk_size``, and dropping the overlap prefix from every chunk
    but the first reconstructs the input exactly.

    Example:
        >>> splitter = RecursiveCharacterSplitter(chunk_size=1000, chunk_overlap=200)
        >>> chunks = splitter.split_text(text)
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        separators: Optional[Sequence[str]] = None,
    ):
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ConfigurationError(
                f"chunk_overlap must not be negative, got {chunk_overlap}"
            )
        if chunk_overlap >= chunk_size:
            raise ConfigurationError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than "
                f"chunk_size ({chunk_size})"
            )

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = tuple(
            PLAIN_TEXT_SEPARATORS if separators is None else separators
        )

    @property
    def piece_limit(self) -> int:
        return self.chunk_size - self.chunk_overlap

    def split_text(self, text: str) -> list[str]:
        if not text:
            return []
        if len(text) <= self.chunk_size:
            return [text]
        pieces = self._split_recursive(text, self.separators)
        return self._merge_pieces(pieces)

    def _split_recursive(self, text: str, separators: Sequence[str]) -> list[str]:
        limit = self.piece_limit
        if len(text) <= limit:
            return [text]

        for i, separator in enumerate(separators):
            if separator == "":
                return [text[j : j + limit] for j in range(0, len(text), limit)]
            if separator in text:
                remaining = separators[i + 1 :]
                break
        else:
            # No separator applies: keep the run whole, over the limit.
            return [text]

        pieces = []
        for piece in _split_on(text, separator):
            if len(piece) <= limit:
                pieces.append(piece)
            else:
                pieces.extend(self._split_recursive(piece, remaining))
        return pieces

    def _merge_pieces(self, pieces: list[str]) -> list[str]:
        chunks: list[str] = []
        current = ""
        added = 0

        for piece in pieces:
            if added and added + len(piece) > self.piece_limit:
                chunks.append(current)
                current = current[-self.chunk_overlap :] if self.chunk_overlap else ""
                added = 0
            current += piece
            added += len(piece)

        if current:
            chunks.append(current)
        return chunks
