import logging
import shutil
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional

import faiss
import numpy as np

from docrag.adapters.base import BaseEmbedder
from docrag.errors import (
    DocRAGError,
    EmbeddingFailed,
    IndexNotInitialized,
    LoadCorrupted,
    PersistenceFailed,
)
from docrag.models import Chunk, SearchResult
from .base import BaseVectorStore
from .ledger import DocumentLedger

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.faiss"
LEDGER_FILENAME = "documents.json"

DEFAULT_HNSW_M = 32
DEFAULT_EF_CONSTRUCTION = 200
DEFAULT_EF_SEARCH = 64


class FAISSVectorStore(BaseVectorStore):
    """FAISS HNSW index paired with a JSON document ledger.

    Row ``i`` of the index is chunk ``i`` of the ledger. Both are written to
    the snapshot directory after every mutating batch, index first. The
    ledger is the source of truth for content and metadata; the index can be
    rebuilt from it with ``rebuild_index()``.

    Writers (``add_documents``, ``persist``, ``clear``, ``initialize``,
    ``rebuild_index``) are serialized by an in-process lock and wait for
    in-flight searches to finish. Searches run concurrently with each other.
    Embedding calls happen outside the lock. One process is assumed to own the
    snapshot directory.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        snapshot_dir: Optional[Path] = None,
        hnsw_m: int = DEFAULT_HNSW_M,
        ef_construction: int = DEFAULT_EF_CONSTRUCTION,
        ef_search: int = DEFAULT_EF_SEARCH,
    ):
        super().__init__(embedder.dimension)
        self.embedder = embedder
        self.snapshot_dir = Path(snapshot_dir) if snapshot_dir else None
        self.hnsw_m = hnsw_m
        self.ef_construction = ef_construction
        self.ef_search = ef_search

        self._index: Optional[faiss.Index] = None
        self._ledger = DocumentLedger()
        self._lock = threading.RLock()
        self._no_readers = threading.Condition(self._lock)
        self._readers = 0

    @contextmanager
    def _writing(self) -> Iterator[None]:
        with self._lock:
            self._no_readers.wait_for(lambda: self._readers == 0)
            yield

    @contextmanager
    def _reading(self) -> Iterator[None]:
        with self._lock:
            self._readers += 1
        try:
            yield
        finally:
            with self._lock:
                self._readers -= 1
                if self._readers == 0:
                    self._no_readers.notify_all()

    @property
    def index_path(self) -> Optional[Path]:
        return self.snapshot_dir / INDEX_FILENAME if self.snapshot_dir else None

    @property
    def ledger_path(self) -> Optional[Path]:
        return self.snapshot_dir / LEDGER_FILENAME if self.snapshot_dir else None

    @property
    def is_initialized(self) -> bool:
        return self._index is not None

    def _new_index(self) -> faiss.Index:
        index = faiss.IndexHNSWFlat(self.dimension, self.hnsw_m)
        index.hnsw.efConstruction = self.ef_construction
        index.hnsw.efSearch = self.ef_search
        return index

    def _reset(self) -> None:
        self._index = self._new_index()
        self._ledger = DocumentLedger()

    def initialize(self) -> None:
        """Load the snapshot, falling back to an empty index.

        A missing snapshot is normal on first start. A snapshot that exists
        but cannot be read is moved aside and replaced by an empty index.
        """
        with self._writing():
            try:
                self._index, self._ledger = self._load_snapshot()
                logger.info(
                    f"Loaded {self._ledger.count} chunks from {self.snapshot_dir}"
                )
            except FileNotFoundError:
                logger.info("No vector store snapshot found, creating new vector store")
                self._reset()
            except LoadCorrupted as e:
                logger.warning(
                    f"Vector store snapshot is corrupted, starting empty: {e}"
                )
                self._quarantine_snapshot()
                self._reset()

    def _load_snapshot(self) -> tuple[faiss.Index, DocumentLedger]:
        if self.snapshot_dir is None or not self.snapshot_dir.exists():
            raise FileNotFoundError(str(self.snapshot_dir))

        has_index = self.index_path.exists()
        has_ledger = self.ledger_path.exists()
        if not has_index and not has_ledger:
            raise FileNotFoundError(str(self.snapshot_dir))
        if has_index != has_ledger:
            missing = LEDGER_FILENAME if has_index else INDEX_FILENAME
            raise LoadCorrupted(f"Snapshot is missing {missing}")

        try:
            index = faiss.read_index(str(self.index_path))
            ledger = DocumentLedger.load(self.ledger_path)
        except (RuntimeError, OSError) as e:
            raise LoadCorrupted(f"Failed to read snapshot: {e}") from e

        if index.d != self.dimension:
            raise LoadCorrupted(
                f"Index dimension {index.d} does not match embedder dimension "
                f"{self.dimension}"
            )
        if index.ntotal != ledger.count:
            raise LoadCorrupted(
                f"Index holds {index.ntotal} vectors but ledger holds "
                f"{ledger.count} chunks"
            )

        hnsw = getattr(index, "hnsw", None)
        if hnsw is not None:
            hnsw.efSearch = self.ef_search
        return index, ledger

    def _quarantine_snapshot(self) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = self.snapshot_dir.with_name(f"{self.snapshot_dir.name}.corrupt-{stamp}")
        try:
            self.snapshot_dir.rename(target)
            logger.warning(f"Moved corrupted snapshot to {target}")
        except OSError as e:
            logger.error(f"Could not move corrupted snapshot aside: {e}")

    def _to_matrix(self, embeddings: list[list[float]], expected: int) -> np.ndarray:
        vectors = np.asarray(embeddings, dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape != (expected, self.dimension):
            raise EmbeddingFailed(
                f"Expected {expected} embeddings of dimension {self.dimension}, "
                f"got shape {vectors.shape}"
            )
        return np.ascontiguousarray(vectors)

    def _embed_documents(self, texts: list[str]) -> np.ndarray:
        try:
            embeddings = self.embedder.embed_batch(texts)
        except DocRAGError:
            raise
        except Exception as e:
            raise EmbeddingFailed(str(e)) from e
        return self._to_matrix(embeddings, len(texts))

    def _embed_query(self, query: str) -> np.ndarray:
        try:
            embedding = self.embedder.embed(query)
        except DocRAGError:
            raise
        except Exception as e:
            raise EmbeddingFailed(str(e)) from e
        return self._to_matrix([embedding], 1)

    def add_documents(self, chunks: Iterable[Chunk]) -> int:
        """Embed chunks and append them to the index and ledger.

        All embeddings are computed before anything is mutated, so a failed
        embedding call leaves the store untouched. A failed persist leaves the
        batch in memory and raises PersistenceFailed.
        """
        if not self.is_initialized:
            raise IndexNotInitialized()

        chunks = list(chunks)
        if not chunks:
            return 0

        vectors = self._embed_documents([chunk.content for chunk in chunks])

        with self._writing():
            if self._index is None:
                raise IndexNotInitialized()
            self._index.add(vectors)
            self._ledger.extend(chunks)
            self.persist()

        logger.info(f"Added {len(chunks)} documents to vector store")
        return len(chunks)

    def search(self, query: str, k: int = 4) -> list[SearchResult]:
        if not self.is_initialized:
            raise IndexNotInitialized()
        if k <= 0 or self.count == 0:
            return []

        query_vector = self._embed_query(query)

        with self._reading():
            index, ledger = self._index, self._ledger
            if index is None:
                raise IndexNotInitialized()
            k = min(k, index.ntotal)
            if k == 0:
                return []

            params = None
            if isinstance(index, faiss.IndexHNSW):
                params = faiss.SearchParametersHNSW()
                params.efSearch = max(self.ef_search, k)
            distances, labels = index.search(query_vector, k, params=params)

            results = [
                SearchResult(
                    content=ledger[int(label)].content,
                    metadata=ledger[int(label)].metadata,
                    score=float(distance),
                )
                for distance, label in zip(distances[0], labels[0])
                if 0 <= label < ledger.count
            ]

        results.sort(key=lambda result: result.score)
        return results

    def persist(self) -> None:
        with self._writing():
            if self._index is None:
                raise IndexNotInitialized()
            if self.snapshot_dir is None:
                return

            try:
                self.snapshot_dir.mkdir(parents=True, exist_ok=True)
                faiss.write_index(self._index, str(self.index_path))
                self._ledger.save(self.ledger_path)
            except (OSError, RuntimeError) as e:
                raise PersistenceFailed(
                    f"Failed to save vector store to {self.snapshot_dir}: {e}"
                ) from e

            logger.info(f"Vector store saved to {self.snapshot_dir}")

    def clear(self) -> None:
        with self._writing():
            if self.snapshot_dir is not None and self.snapshot_dir.exists():
                try:
                    shutil.rmtree(self.snapshot_dir)
                except OSError as e:
                    raise PersistenceFailed(
                        f"Failed to delete {self.snapshot_dir}: {e}"
                    ) from e
            self._reset()
            logger.info("Vector store cleared")

    def rebuild_index(self) -> int:
        """Re-embed every ledger chunk into a fresh index and persist it.

        Embedding happens outside the lock. Chunks added meanwhile are picked
        up and embedded before the new index replaces the old one; a clear
        meanwhile restarts the rebuild from the current ledger.
        """
        if not self.is_initialized:
            raise IndexNotInitialized()

        chunks: list[Chunk] = []
        vectors = np.empty((0, self.dimension), dtype=np.float32)

        while True:
            with self._writing():
                current = self._ledger.all()
                done = [c.id for c in current[: len(chunks)]]
                if done != [c.id for c in chunks]:
                    chunks = []
                    vectors = vectors[:0]
                pending = current[len(chunks) :]

                if not pending:
                    index = self._new_index()
                    if chunks:
                        index.add(vectors)
                    self._index = index
                    self._ledger = DocumentLedger(chunks)
                    self.persist()
                    break

            pending_vectors = self._embed_documents([c.content for c in pending])
            chunks = chunks + pending
            vectors = np.ascontiguousarray(np.vstack([vectors, pending_vectors]))

        logger.info(f"Rebuilt index from {len(chunks)} ledger chunks")
        return len(chunks)

    def get_all(self) -> list[Chunk]:
        with self._lock:
            return self._ledger.all()

    @property
    def count(self) -> int:
        return self._ledger.count
