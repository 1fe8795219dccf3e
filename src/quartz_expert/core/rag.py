"""RAG pipeline for Quartz documentation Q&A."""

import logging
from dataclasses import dataclass, field
from typing import Any

from quartz_expert.config import Settings
from quartz_expert.core.embeddings import Embedder
from quartz_expert.core.llm import Generator
from quartz_expert.core.retriever import Retriever
from quartz_expert.core.vectorstore import SimilarityResult, VectorStore

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"

FALLBACK_ANSWER = "I don't have enough information to answer that question about Quartz."
FALLBACK_CONFIDENCE = 0.1

PROMPT_TEMPLATE = """You are the Quartz Expert Agent, specialized in the Quartz static site generator.
Use the following context to answer the user's question accurately and helpfully.

Context from Quartz documentation:
{context}
{conversation}
User Question: {question}

Instructions:
1. Answer based ONLY on the provided context
2. Be specific and include code examples when relevant
3. Reference specific Quartz features, plugins, or configurations
4. If the context doesn't contain enough information, acknowledge this

Answer:"""

CONVERSATION_TEMPLATE = """
Previous conversation:
{history}
"""


@dataclass(frozen=True)
class AnswerResult:
    """An answer from the RAG pipeline."""

    answer: str
    sources: frozenset[str] = frozenset()
    confidence: float = 0.0
    context_usage: float = 0.0


@dataclass
class SearchHit:
    """A raw search result for the knowledge base search interface."""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    relevance_score: float = 0.0


FALLBACK_RESULT = AnswerResult(
    answer=FALLBACK_ANSWER,
    sources=frozenset(),
    confidence=FALLBACK_CONFIDENCE,
    context_usage=0.0,
)


def build_prompt(question: str, context: str, conversation_context: str | None = None) -> str:
    """Fill the grounded-answer template."""
    conversation = (
        CONVERSATION_TEMPLATE.format(history=conversation_context)
        if conversation_context
        else ""
    )
    return PROMPT_TEMPLATE.format(context=context, conversation=conversation, question=question)


def compute_confidence(results: list[SimilarityResult]) -> float:
    """Mean similarity of the retrieved chunks, capped to [0, 1]."""
    if not results:
        return 0.0
    average = sum(result.score for result in results) / len(results)
    return max(0.0, min(average, 1.0))


def compute_context_usage(context: str, budget: int) -> float:
    """Fraction of the assumed context window taken by ``context``."""
    return min(len(context) / budget, 1.0)


class RAGPipeline:
    """RAG pipeline combining retrieval and generation."""

    def __init__(
        self,
        embedder: Embedder,
        vector_store: VectorStore,
        settings: Settings,
        generator: Generator | None = None,
    ):
        """Initialize the RAG pipeline.

        Args:
            embedder: The embedding model.
            vector_store: The vector database.
            settings: Application settings.
            generator: Generative model client, built from settings if omitted.
        """
        self.settings = settings
        self.retriever = Retriever(embedder, vector_store, top_k=settings.top_k)
        self.generator = generator or Generator(settings)

    def search(self, query: str, limit: int | None = None) -> list[SearchHit]:
        """Search the knowledge base without generating an answer.

        Args:
            query: The search query.
            limit: Number of results to return (defaults to settings.top_k).

        Returns:
            Hits ordered by descending relevance.
        """
        return [
            SearchHit(
                content=result.chunk.text,
                metadata=result.chunk.metadata,
                relevance_score=result.score,
            )
            for result in self.retriever.retrieve(query, limit)
        ]

    def answer(self, question: str, conversation_context: str | None = None) -> AnswerResult:
        """Answer a question from the retrieved documentation.

        Args:
            question: The question to answer.
            conversation_context: Optional ``role: content`` lines of the
                preceding conversation.

        Returns:
            An AnswerResult, or the fixed fallback when nothing was retrieved.

        Raises:
            RetrievalError: If the vector store is not ready.
            GenerationError: If the generative model call fails.
        """
        results = self.retriever.retrieve(question)

        if not results:
            logger.info("No chunks retrieved for question, returning fallback")
            return FALLBACK_RESULT

        sources = frozenset(result.chunk.source for result in results)
        context = CONTEXT_SEPARATOR.join(result.chunk.text for result in results)

        prompt = build_prompt(question, context, conversation_context)
        answer_text = self.generator.generate(prompt)

        return AnswerResult(
            answer=answer_text or "No response generated.",
            sources=sources,
            confidence=compute_confidence(results),
            context_usage=compute_context_usage(context, self.settings.context_window_chars),
        )
