"""Ingestion batch: load, chunk, embed and store documentation."""

import logging
from dataclasses import dataclass
from pathlib import Path

from quartz_expert.core.chunker import RecursiveChunker
from quartz_expert.core.embeddings import Embedder
from quartz_expert.core.loader import Document, DocumentLoader
from quartz_expert.core.vectorstore import VectorStore

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    """Counts reported after an ingestion run."""

    chunk_count: int
    document_count: int


class Ingestor:
    """Processes a documentation tree one document at a time."""

    def __init__(
        self,
        loader: DocumentLoader,
        chunker: RecursiveChunker,
        embedder: Embedder,
        vector_store: VectorStore,
    ):
        self.loader = loader
        self.chunker = chunker
        self.embedder = embedder
        self.vector_store = vector_store

    def ingest(self, root_path: Path | str) -> IngestResult:
        """Ingest every markdown document under ``root_path``.

        Documents that cannot be read are skipped by the loader. Chunks are
        upserted per document, so a later failure does not roll back earlier
        documents.

        Raises:
            IngestionError: If the vector store is not ready.
        """
        documents = self.loader.load(root_path)

        total_chunks = 0
        for document in documents:
            total_chunks += self.ingest_document(document)

        logger.info(
            "Ingested %d chunks from %d documents", total_chunks, len(documents)
        )
        return IngestResult(chunk_count=total_chunks, document_count=len(documents))

    def ingest_document(self, document: Document) -> int:
        """Chunk, embed and upsert a single document. Returns the chunk count."""
        chunks = self.chunker.split(document)
        if not chunks:
            logger.debug("No chunks generated for %s", document.path)
            return 0

        embeddings = self.embedder.embed_batch([chunk.text for chunk in chunks])
        for chunk, embedding in zip(chunks, embeddings):
            chunk.embedding = embedding

        self.vector_store.upsert(chunks)
        logger.debug("Added %d chunks from %s", len(chunks), document.path)
        return len(chunks)
