"""API request/response models."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class HistoryMessage(BaseModel):
    """A message in the conversation history."""

    role: Literal["user", "assistant"]
    content: str


class AskRequest(BaseModel):
    """Request body for the ask endpoint."""

    question: str = Field(..., min_length=1, description="The question to ask")
    context: str | None = Field(None, description="Optional conversation context")


class AskResponse(BaseModel):
    """Response body for the ask endpoint."""

    answer: str
    sources: list[str]
    confidence: float
    context_usage: float
    processing_time_ms: float


class ChatRequest(BaseModel):
    """Request body for the chat endpoint."""

    message: str = Field(..., min_length=1, description="The user's message")
    session_id: str | None = Field(None, description="Optional session ID for conversation history")
    history: list[HistoryMessage] | None = Field(
        None, description="Caller-held history; the server-side session is used if omitted"
    )


class ChatResponse(BaseModel):
    """Response body for the chat endpoint."""

    response: str
    session_id: str
    sources: list[str]
    suggestions: list[str]


class RefreshRequest(BaseModel):
    """Request body for the knowledge refresh endpoint."""

    reset: bool = Field(False, description="Clear the collection before re-ingesting")


class RefreshResponse(BaseModel):
    """Response body for the knowledge refresh endpoint."""

    success: bool
    chunk_count: int
    document_count: int
    last_updated: datetime


class SearchRequest(BaseModel):
    """Request body for the search endpoint."""

    query: str = Field(..., min_length=1)
    limit: int = Field(5, gt=0, le=50)


class SearchResult(BaseModel):
    """A single knowledge base search hit."""

    content: str
    metadata: dict[str, Any]
    relevance_score: float
