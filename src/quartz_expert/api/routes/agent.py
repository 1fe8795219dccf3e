"""Agent API routes: ask, chat, search, knowledge refresh, metrics."""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request

from quartz_expert.api.models import (
    AskRequest,
    AskResponse,
    ChatRequest,
    ChatResponse,
    RefreshRequest,
    RefreshResponse,
    SearchRequest,
    SearchResult,
)
from quartz_expert.api.session import SessionStore
from quartz_expert.exceptions import GenerationError, QuartzExpertError, RetrievalError
from quartz_expert.monitoring import CognitiveMetrics, MetricsMonitor
from quartz_expert.service import QuartzExpert

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["agent"])

# Assumed consistency of knowledge-based answers, reported to the monitor.
ANSWER_CONSISTENCY = 0.95


def _expert(request: Request) -> QuartzExpert:
    return request.app.state.expert


def _sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def _monitor(request: Request) -> MetricsMonitor:
    return request.app.state.monitor


def _http_error(error: QuartzExpertError) -> HTTPException:
    if isinstance(error, RetrievalError):
        return HTTPException(status_code=503, detail=error.message)
    if isinstance(error, GenerationError):
        return HTTPException(status_code=502, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)


@router.get("/health")
def health(request: Request) -> dict:
    """Liveness plus vector store readiness."""
    expert = _expert(request)
    return {
        "status": "healthy",
        "service": "quartz-expert-agent",
        "vector_store_ready": expert.vector_store.is_ready,
    }


@router.post("/ask", response_model=AskResponse)
def ask(body: AskRequest, request: Request) -> AskResponse:
    """Answer a single question."""
    monitor = _monitor(request)
    started = time.perf_counter()

    try:
        result = _expert(request).answer(body.question, body.context)
    except QuartzExpertError as e:
        logger.error("Error processing question: %s", e)
        monitor.record(
            CognitiveMetrics(
                agent_id=monitor.agent_id,
                timestamp=time.time(),
                processing_latency=(time.perf_counter() - started) * 1000,
                context_window_usage=0.0,
                error_rate=1.0,
                semantic_consistency=0.0,
            )
        )
        raise _http_error(e) from e

    elapsed_ms = (time.perf_counter() - started) * 1000
    monitor.record(
        CognitiveMetrics(
            agent_id=monitor.agent_id,
            timestamp=time.time(),
            processing_latency=elapsed_ms,
            context_window_usage=result.context_usage,
            error_rate=0.0,
            semantic_consistency=ANSWER_CONSISTENCY,
        )
    )

    return AskResponse(
        answer=result.answer,
        sources=sorted(result.sources),
        confidence=result.confidence,
        context_usage=result.context_usage,
        processing_time_ms=elapsed_ms,
    )


@router.post("/chat", response_model=ChatResponse)
def chat(body: ChatRequest, request: Request) -> ChatResponse:
    """Chat turn; history comes from the body or the server-side session."""
    sessions = _sessions(request)

    if body.history is not None:
        history = [msg.model_dump() for msg in body.history]
    else:
        history = sessions.get_history(body.session_id)

    try:
        result = _expert(request).chat(body.message, history, body.session_id)
    except QuartzExpertError as e:
        logger.error("Chat error: %s", e)
        raise _http_error(e) from e

    sessions.add_message(result.session_id, "user", body.message)
    sessions.add_message(result.session_id, "assistant", result.message)

    return ChatResponse(
        response=result.message,
        session_id=result.session_id,
        sources=sorted(result.sources),
        suggestions=result.suggestions,
    )


@router.delete("/chat/{session_id}")
def clear_session(session_id: str, request: Request) -> dict:
    """Clear a chat session's history."""
    if _sessions(request).clear(session_id):
        return {"message": "Session cleared", "session_id": session_id}
    raise HTTPException(status_code=404, detail="Session not found")


@router.post("/search", response_model=list[SearchResult])
def search(body: SearchRequest, request: Request) -> list[SearchResult]:
    """Search the knowledge base without generating an answer."""
    try:
        hits = _expert(request).search(body.query, body.limit)
    except QuartzExpertError as e:
        raise _http_error(e) from e

    return [
        SearchResult(
            content=hit.content,
            metadata=hit.metadata,
            relevance_score=hit.relevance_score,
        )
        for hit in hits
    ]


@router.get("/metrics")
def metrics(request: Request) -> dict:
    """Recent cognitive-load averages."""
    monitor = _monitor(request)
    return {"agent_id": monitor.agent_id, "samples": len(monitor), **monitor.summary()}


@router.post("/knowledge/refresh", response_model=RefreshResponse)
def refresh_knowledge(request: Request, body: RefreshRequest | None = None) -> RefreshResponse:
    """Re-ingest the configured documentation tree."""
    reset = body.reset if body is not None else False
    try:
        result = _expert(request).refresh(reset=reset)
    except QuartzExpertError as e:
        logger.error("Knowledge refresh failed: %s", e)
        raise _http_error(e) from e

    return RefreshResponse(
        success=True,
        chunk_count=result.chunk_count,
        document_count=result.document_count,
        last_updated=datetime.now(timezone.utc),
    )
