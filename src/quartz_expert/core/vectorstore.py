"""Vector store wrapper using ChromaDB."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Sequence

import chromadb
from chromadb.config import Settings as ChromaSettings

from quartz_expert.core.chunker import Chunk
from quartz_expert.exceptions import IngestionError, InitializationError, RetrievalError

logger = logging.getLogger(__name__)

MEMORY_CONNECTION = ":memory:"


@dataclass
class SimilarityResult:
    """A stored chunk together with its similarity to a query."""

    chunk: Chunk
    score: float


def distance_to_score(distance: float) -> float:
    """Convert a cosine distance into a similarity in [0, 1]."""
    return max(0.0, min(1.0, 1.0 - distance))


class VectorStore:
    """Wrapper for a ChromaDB collection of document chunks.

    The store is inert until ``ensure_ready()`` is called. Writes are
    serialized, and every backend call holds one of ``pool_size`` slots so
    concurrent callers beyond that bound block until a slot frees up.
    """

    def __init__(
        self,
        connection: Path | str,
        collection_name: str = "quartz_documents",
        pool_size: int = 4,
    ):
        """Initialize the vector store.

        Args:
            connection: ``:memory:``, a ``http(s)://host:port`` URL, or a
                directory to persist the database.
            collection_name: Name of the collection to use.
            pool_size: Maximum number of simultaneous backend operations.
        """
        self.connection = str(connection)
        self.collection_name = collection_name
        self.client = None
        self._collection = None
        self._write_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(pool_size)

    @property
    def is_ready(self) -> bool:
        return self._collection is not None

    def ensure_ready(self) -> None:
        """Connect to the backend and get or create the collection.

        Safe to call more than once.

        Raises:
            InitializationError: If the backend is unreachable.
        """
        with self._init_lock:
            if self._collection is not None:
                return
            try:
                self.client = self._create_client()
                self.client.heartbeat()
                self._collection = self._get_or_create_collection()
            except Exception as e:
                self.client = None
                raise InitializationError(
                    f"Vector store unavailable: {e}",
                    details={"connection": self.connection},
                ) from e

        logger.info(
            "Vector store ready (%s, collection=%s)", self.connection, self.collection_name
        )

    def _create_client(self):
        if self.connection == MEMORY_CONNECTION:
            return chromadb.EphemeralClient(
                settings=ChromaSettings(anonymized_telemetry=False)
            )
        if self.connection.startswith(("http://", "https://")):
            scheme, _, address = self.connection.partition("://")
            host, _, port = address.rstrip("/").partition(":")
            return chromadb.HttpClient(
                host=host,
                port=int(port or 8000),
                ssl=scheme == "https",
                settings=ChromaSettings(anonymized_telemetry=False),
            )

        persist_directory = Path(self.connection)
        persist_directory.mkdir(parents=True, exist_ok=True)
        return chromadb.PersistentClient(
            path=str(persist_directory),
            settings=ChromaSettings(anonymized_telemetry=False),
        )

    def _get_or_create_collection(self):
        return self.client.get_or_create_collection(
            name=self.collection_name,
            metadata={"hnsw:space": "cosine"},
            embedding_function=None,
        )

    @contextmanager
    def _slot(self) -> Iterator[None]:
        with self._slots:
            yield

    def upsert(self, chunks: Sequence[Chunk]) -> None:
        """Insert or replace chunks by id.

        Args:
            chunks: Chunks with their ``embedding`` already computed.

        Raises:
            IngestionError: If the store is not ready or a chunk has no
                embedding.
        """
        if not chunks:
            return
        if self._collection is None:
            raise IngestionError("Vector store not initialized")

        missing = [chunk.id for chunk in chunks if chunk.embedding is None]
        if missing:
            raise IngestionError(
                "Chunks must be embedded before upsert",
                path=chunks[0].source,
                details={"chunk_ids": missing},
            )

        ingested_at = datetime.now(timezone.utc).isoformat()
        with self._write_lock, self._slot():
            self._collection.upsert(
                ids=[chunk.id for chunk in chunks],
                documents=[chunk.text for chunk in chunks],
                embeddings=[chunk.embedding for chunk in chunks],
                metadatas=[
                    {
                        **chunk.metadata,
                        "source": chunk.source,
                        "start_index": chunk.start_index,
                        "end_index": chunk.end_index,
                        "ingested_at": ingested_at,
                    }
                    for chunk in chunks
                ],
            )

    def query(self, query_embedding: list[float], k: int = 5) -> list[SimilarityResult]:
        """Return up to ``k`` chunks most similar to the query vector.

        Args:
            query_embedding: The query embedding vector.
            k: Maximum number of results.

        Returns:
            Results ordered by descending score, empty when the store holds
            no chunks.

        Raises:
            RetrievalError: If the store has not been initialized.
        """
        if self._collection is None:
            raise RetrievalError("Vector store not initialized")

        with self._slot():
            available = self._collection.count()
            if available == 0 or k <= 0:
                return []
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=min(k, available),
                include=["documents", "metadatas", "distances"],
            )

        matches = []
        for chunk_id, text, meta, dist in zip(
            results["ids"][0],
            results["documents"][0],
            results["metadatas"][0],
            results["distances"][0],
        ):
            matches.append(
                SimilarityResult(
                    chunk=self._to_chunk(chunk_id, text, meta),
                    score=distance_to_score(dist),
                )
            )

        matches.sort(key=lambda match: match.score, reverse=True)
        return matches

    @staticmethod
    def _to_chunk(chunk_id: str, text: str, meta: dict[str, Any] | None) -> Chunk:
        metadata = dict(meta or {})
        start = metadata.pop("start_index", 0)
        end = metadata.pop("end_index", 0)
        return Chunk(
            id=chunk_id,
            source=metadata.get("source", "unknown"),
            text=text,
            metadata=metadata,
            start_index=start,
            end_index=end,
        )

    def count(self) -> int:
        """Return the number of chunks in the collection."""
        if self._collection is None:
            raise RetrievalError("Vector store not initialized")
        with self._slot():
            return self._collection.count()

    def reset(self) -> None:
        """Delete and recreate the collection."""
        if self._collection is None:
            raise RetrievalError("Vector store not initialized")
        with self._write_lock, self._slot():
            self.client.delete_collection(self.collection_name)
            self._collection = self._get_or_create_collection()

    def close(self) -> None:
        """Drop the backend handle; ``ensure_ready()`` reconnects."""
        with self._init_lock:
            self._collection = None
            self.client = None
