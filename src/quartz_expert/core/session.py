"""Conversational wrapper around the RAG pipeline."""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Literal, TypedDict

from quartz_expert.core.llm import Generator
from quartz_expert.core.rag import RAGPipeline

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3

DEFAULT_SUGGESTIONS = (
    "How do I customize the theme?",
    "What plugins are available?",
    "How do I deploy to GitHub Pages?",
)

SUGGESTION_PROMPT = """Based on this Q&A about Quartz, suggest 3 follow-up questions:

Question: {question}
Answer: {answer}...

Generate 3 concise follow-up questions, one per line:"""

# "1. ", "2) ", "- ", "* " list markers
LIST_MARKER_PATTERN = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s*")


class ChatMessage(TypedDict):
    """A message in the conversation history."""

    role: Literal["user", "assistant"]
    content: str


@dataclass
class ChatResult:
    """Reply to one chat turn."""

    message: str
    session_id: str
    sources: frozenset[str] = frozenset()
    suggestions: list[str] = field(default_factory=list)


def new_session_id() -> str:
    """Generate a collision-resistant session id."""
    return f"session_{uuid.uuid4().hex}"


def format_history(history: list[ChatMessage]) -> str:
    return "\n".join(f"{msg['role']}: {msg['content']}" for msg in history)


def parse_suggestions(text: str) -> list[str]:
    """Extract up to three questions from a model reply."""
    lines = (LIST_MARKER_PATTERN.sub("", line).strip() for line in text.split("\n"))
    return [line for line in lines if line][:SUGGESTION_COUNT]


class SessionManager:
    """Runs chat turns over caller-held history.

    Only the most recent ``max_history_entries`` messages shape the answer;
    the manager itself stores nothing between calls.
    """

    def __init__(
        self,
        pipeline: RAGPipeline,
        generator: Generator | None = None,
        max_history_entries: int = 5,
        suggestion_max_tokens: int = 200,
    ):
        self.pipeline = pipeline
        self.generator = generator or pipeline.generator
        self.max_history_entries = max_history_entries
        self.suggestion_max_tokens = suggestion_max_tokens

    def chat(
        self,
        message: str,
        history: list[ChatMessage] | None = None,
        session_id: str | None = None,
    ) -> ChatResult:
        """Answer one message in the context of recent history.

        Args:
            message: The user's message.
            history: Prior messages, oldest first.
            session_id: Existing session id; a new one is generated if absent.

        Raises:
            RetrievalError: If the vector store is not ready.
            GenerationError: If the primary answer cannot be generated.
        """
        recent = self.recent_history(history or [])
        result = self.pipeline.answer(message, format_history(recent) or None)

        return ChatResult(
            message=result.answer,
            session_id=session_id or new_session_id(),
            sources=result.sources,
            suggestions=self.suggest(message, result.answer),
        )

    def recent_history(self, history: list[ChatMessage]) -> list[ChatMessage]:
        if self.max_history_entries <= 0:
            return []
        return list(history[-self.max_history_entries :])

    def suggest(self, question: str, answer: str) -> list[str]:
        """Ask the model for follow-up questions, falling back to a static list."""
        prompt = SUGGESTION_PROMPT.format(question=question, answer=answer[:500])
        try:
            suggestions = parse_suggestions(
                self.generator.generate(prompt, max_tokens=self.suggestion_max_tokens)
            )
        except Exception as e:
            logger.warning("Follow-up suggestion generation failed: %s", e)
            return list(DEFAULT_SUGGESTIONS)

        return suggestions or list(DEFAULT_SUGGESTIONS)
