import json
import logging
from pathlib import Path
from typing import Iterable

from pydantic import TypeAdapter, ValidationError

from docrag.errors import LoadCorrupted
from docrag.models import Chunk, FileSummary

logger = logging.getLogger(__name__)

_CHUNK_LIST = TypeAdapter(list[Chunk])


class DocumentLedger:
    """Append-only record of stored chunks, in index insertion order.

    Position ``i`` in the ledger is row ``i`` of the vector index, so the two
    must only ever be mutated together.
    """

    def __init__(self, chunks: Iterable[Chunk] = ()):
        self._chunks: list[Chunk] = list(chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __getitem__(self, position: int) -> Chunk:
        return self._chunks[position]

    @property
    def count(self) -> int:
        return len(self._chunks)

    def all(self) -> list[Chunk]:
        return list(self._chunks)

    def append(self, chunk: Chunk) -> None:
        self._chunks.append(chunk)

    def extend(self, chunks: Iterable[Chunk]) -> None:
        self._chunks.extend(chunks)

    def group_by_filename(self) -> list[FileSummary]:
        """Chunk counts per filename, first-seen order, with the latest upload time."""
        summaries: dict[str, FileSummary] = {}
        for chunk in self._chunks:
            meta = chunk.metadata
            summary = summaries.get(meta.filename)
            if summary is None:
                summaries[meta.filename] = FileSummary(
                    filename=meta.filename,
                    chunk_count=1,
                    last_uploaded_at=meta.uploaded_at,
                )
            else:
                summary.chunk_count += 1
                if meta.uploaded_at > summary.last_uploaded_at:
                    summary.last_uploaded_at = meta.uploaded_at
        return list(summaries.values())

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        records = [chunk.model_dump(mode="json") for chunk in self._chunks]
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: Path) -> "DocumentLedger":
        """Read a ledger file.

        Raises:
            FileNotFoundError: If the file does not exist.
            LoadCorrupted: If the file cannot be parsed into chunks.
        """
        with open(path, "r", encoding="utf-8") as f:
            try:
                records = json.load(f)
                chunks = _CHUNK_LIST.validate_python(records)
            except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
                raise LoadCorrupted(f"Unreadable document ledger {path}: {e}") from e
        logger.debug(f"Read {len(chunks)} chunks from {path}")
        return cls(chunks)
