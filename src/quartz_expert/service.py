"""Quartz Expert service: owns the pipeline components and their lifecycle."""

import logging
from pathlib import Path

from quartz_expert.config import Settings, get_settings
from quartz_expert.core.chunker import RecursiveChunker
from quartz_expert.core.embeddings import Embedder
from quartz_expert.core.ingest import Ingestor, IngestResult
from quartz_expert.core.llm import Generator
from quartz_expert.core.loader import DocumentLoader
from quartz_expert.core.rag import AnswerResult, RAGPipeline, SearchHit
from quartz_expert.core.session import ChatMessage, ChatResult, SessionManager
from quartz_expert.core.vectorstore import VectorStore
from quartz_expert.exceptions import IngestionError, RetrievalError

logger = logging.getLogger(__name__)


class QuartzExpert:
    """Entry point used by the HTTP adapter and scripts.

    Components that talk to external services are created lazily in
    ``init()`` unless they are passed in, and ``close()`` releases the
    vector store handle. Collaborators receive the store by reference.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        embedder: Embedder | None = None,
        generator: Generator | None = None,
        vector_store: VectorStore | None = None,
    ):
        self.settings = settings or get_settings()
        self.embedder = embedder
        self.generator = generator
        self.vector_store = vector_store or VectorStore(
            connection=self.settings.store_connection,
            collection_name=self.settings.collection_name,
            pool_size=self.settings.store_pool_size,
        )
        self.pipeline: RAGPipeline | None = None
        self.sessions: SessionManager | None = None
        self.ingestor: Ingestor | None = None

    def init(self) -> "QuartzExpert":
        """Connect the vector store and wire the pipeline.

        Raises:
            InitializationError: If the vector store backend is unreachable.
        """
        self.vector_store.ensure_ready()
        if self.pipeline is not None:
            return self

        if self.embedder is None:
            self.embedder = Embedder(model_name=self.settings.embedding_model)
        if self.generator is None:
            self.generator = Generator(self.settings)

        self.pipeline = RAGPipeline(
            embedder=self.embedder,
            vector_store=self.vector_store,
            settings=self.settings,
            generator=self.generator,
        )
        self.sessions = SessionManager(
            self.pipeline,
            max_history_entries=self.settings.max_history_entries,
            suggestion_max_tokens=self.settings.suggestion_max_tokens,
        )
        self.ingestor = Ingestor(
            loader=DocumentLoader(),
            chunker=RecursiveChunker(
                chunk_size=self.settings.chunk_size,
                chunk_overlap=self.settings.chunk_overlap,
            ),
            embedder=self.embedder,
            vector_store=self.vector_store,
        )
        logger.info(
            "Pipeline ready (embedding=%s, llm=%s)",
            self.settings.embedding_model,
            self.settings.llm_model,
        )
        return self

    def close(self) -> None:
        self.vector_store.close()
        self.pipeline = None
        self.sessions = None
        self.ingestor = None

    def __enter__(self) -> "QuartzExpert":
        return self.init()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _require_ready(self) -> None:
        if self.pipeline is None:
            raise RetrievalError("QuartzExpert.init() must be called before querying")

    def ingest(self, root_path: Path | str | None = None) -> IngestResult:
        """Ingest the documentation tree (defaults to ``settings.docs_path``)."""
        if self.ingestor is None:
            raise IngestionError("QuartzExpert.init() must be called before ingest()")
        return self.ingestor.ingest(root_path or self.settings.docs_path)

    def refresh(self, reset: bool = False) -> IngestResult:
        """Re-ingest ``settings.docs_path`` into the running store.

        Args:
            reset: Drop the collection first so chunks of removed documents
                do not linger.

        Raises:
            IngestionError: If called before ``init()``.
        """
        if self.ingestor is None:
            raise IngestionError("QuartzExpert.init() must be called before refresh()")
        if reset:
            logger.info("Resetting collection %s", self.settings.collection_name)
            self.vector_store.reset()
        return self.ingest()

    def answer(self, question: str, context: str | None = None) -> AnswerResult:
        self._require_ready()
        return self.pipeline.answer(question, context)

    def chat(
        self,
        message: str,
        history: list[ChatMessage] | None = None,
        session_id: str | None = None,
    ) -> ChatResult:
        self._require_ready()
        return self.sessions.chat(message, history, session_id)

    def search(self, query: str, limit: int = 5) -> list[SearchHit]:
        self._require_ready()
        return self.pipeline.search(query, limit)
