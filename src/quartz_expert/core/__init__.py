"""Core RAG components."""

from quartz_expert.core.chunker import Chunk, RecursiveChunker
from quartz_expert.core.embeddings import Embedder
from quartz_expert.core.ingest import Ingestor, IngestResult
from quartz_expert.core.loader import Document, DocumentLoader
from quartz_expert.core.rag import AnswerResult, RAGPipeline, SearchHit
from quartz_expert.core.retriever import Retriever
from quartz_expert.core.session import ChatResult, SessionManager
from quartz_expert.core.vectorstore import SimilarityResult, VectorStore

__all__ = [
    "AnswerResult",
    "ChatResult",
    "Chunk",
    "Document",
    "DocumentLoader",
    "Embedder",
    "IngestResult",
    "Ingestor",
    "RAGPipeline",
    "RecursiveChunker",
    "Retriever",
    "SearchHit",
    "SessionManager",
    "SimilarityResult",
    "VectorStore",
]
