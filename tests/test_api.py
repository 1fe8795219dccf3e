"""Tests for the FastAPI adapter."""

import httpx
import pytest
from fastapi.testclient import TestClient

from quartz_expert.api.main import create_app
from quartz_expert.api.session import SessionStore
from quartz_expert.core.vectorstore import VectorStore
from quartz_expert.exceptions import InitializationError
from quartz_expert.monitoring import MetricsMonitor
from quartz_expert.service import QuartzExpert


@pytest.fixture
def client(expert, docs_tree):
    expert.ingest(docs_tree)
    app = create_app(expert=expert, monitor=MetricsMonitor("quartz-expert"))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def docs_client(settings, embedder, generator, docs_tree):
    """Client whose service is configured with the sample docs path."""
    configured = settings.model_copy(update={"docs_path": docs_tree})
    service = QuartzExpert(configured, embedder=embedder, generator=generator)
    app = create_app(expert=service, monitor=MetricsMonitor("quartz-expert"))
    with TestClient(app) as test_client:
        yield test_client
    service.close()


class TestEndpoints:
    """Tests for the agent routes."""

    def test_health(self, client):
        """Test that health reports a ready vector store."""
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["vector_store_ready"] is True

    def test_ask(self, client):
        """Test a grounded answer with sources and bounded scores."""
        response = client.post("/api/ask", json={"question": "How do I create a custom plugin?"})

        assert response.status_code == 200
        data = response.json()
        assert "plugins/custom.md" in data["sources"]
        assert 0.0 <= data["confidence"] <= 1.0
        assert 0.0 <= data["context_usage"] <= 1.0

    def test_ask_records_metric(self, client):
        """Test that each answered question is recorded by the monitor."""
        client.post("/api/ask", json={"question": "What is Quartz?"})

        metrics = client.get("/api/metrics").json()

        assert metrics["samples"] == 1
        assert metrics["error_rate"] == 0.0

    def test_ask_requires_question(self, client):
        """Test that an empty question is rejected by validation."""
        response = client.post("/api/ask", json={"question": ""})

        assert response.status_code == 422

    def test_chat_keeps_server_side_history(self, client, generator):
        """Test that the session store supplies history when the caller sends none."""
        first = client.post("/api/chat", json={"message": "Hello"}).json()
        session_id = first["session_id"]

        second = client.post(
            "/api/chat", json={"message": "Tell me more", "session_id": session_id}
        ).json()

        assert second["session_id"] == session_id
        assert len(second["suggestions"]) == 3
        assert "user: Hello" in generator.answer_prompts[-1]

    def test_chat_with_caller_history(self, client, generator):
        """Test that caller-supplied history reaches the prompt."""
        response = client.post(
            "/api/chat",
            json={
                "message": "And emitters?",
                "history": [
                    {"role": "user", "content": "What are transformers?"},
                    {"role": "assistant", "content": "They rewrite markdown."},
                ],
            },
        )

        assert response.status_code == 200
        assert "assistant: They rewrite markdown." in generator.answer_prompts[-1]

    def test_clear_session(self, client):
        """Test that a session can be cleared once."""
        session_id = client.post("/api/chat", json={"message": "Hello"}).json()["session_id"]

        assert client.delete(f"/api/chat/{session_id}").status_code == 200
        assert client.delete(f"/api/chat/{session_id}").status_code == 404

    def test_search(self, client):
        """Test that search returns at most the requested number of hits."""
        response = client.post("/api/search", json={"query": "deploy GitHub Pages", "limit": 2})

        assert response.status_code == 200
        hits = response.json()
        assert 0 < len(hits) <= 2
        assert {"content", "metadata", "relevance_score"} <= set(hits[0])


class TestKnowledgeRefresh:
    """Tests for the knowledge refresh route."""

    def test_refresh_without_body(self, docs_client):
        """Test that a bare POST re-ingests the configured docs."""
        response = docs_client.post("/api/knowledge/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["document_count"] == 3
        assert data["chunk_count"] > 0
        assert data["last_updated"]

    def test_refresh_makes_docs_answerable(self, docs_client):
        """Test that refreshed docs are used by later answers."""
        docs_client.post("/api/knowledge/refresh", json={"reset": True})

        response = docs_client.post(
            "/api/ask", json={"question": "How do I create a custom plugin?"}
        )

        assert "plugins/custom.md" in response.json()["sources"]

    def test_reset_drops_removed_documents(self, docs_client, docs_tree):
        """Test that reset removes chunks of deleted documents."""
        first = docs_client.post("/api/knowledge/refresh").json()
        (docs_tree / "hosting" / "deploy.md").unlink()

        second = docs_client.post("/api/knowledge/refresh", json={"reset": True}).json()
        hits = docs_client.post(
            "/api/search", json={"query": "Deploy GitHub Pages Netlify", "limit": 50}
        ).json()

        assert second["document_count"] == first["document_count"] - 1
        assert all(hit["metadata"]["source"] != "hosting/deploy.md" for hit in hits)


class TestErrors:
    """Tests for error mapping."""

    def test_generation_failure_maps_to_502(self, settings, embedder, failing_generator, docs_tree):
        """Test that a generation failure is a 502 and counted as an error."""
        service = QuartzExpert(settings, embedder=embedder, generator=failing_generator).init()
        service.ingest(docs_tree)
        monitor = MetricsMonitor("quartz-expert")

        with TestClient(create_app(expert=service, monitor=monitor)) as client:
            response = client.post("/api/ask", json={"question": "How do plugins work?"})
            metrics = client.get("/api/metrics").json()

        assert response.status_code == 502
        assert metrics["error_rate"] == 1.0
        service.close()


class TestLifespan:
    """Tests for component ownership across startup and shutdown."""

    def test_caller_components_left_open(self, expert):
        """Test that shutdown does not close a service or monitor it was given."""
        http_client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        monitor = MetricsMonitor("quartz-expert", url="http://monitor:3025", client=http_client)

        with TestClient(create_app(expert=expert, monitor=monitor)):
            pass

        assert expert.vector_store.is_ready
        assert not http_client.is_closed
        monitor.close()
        assert http_client.is_closed

    def test_built_monitor_closed_when_init_fails(self, settings, embedder, generator, monkeypatch):
        """Test that a monitor built at startup is closed if the service fails to start."""
        store = VectorStore(":memory:", "unreachable")

        def refuse():
            raise ConnectionError("no backend")

        monkeypatch.setattr(store, "_create_client", refuse)
        service = QuartzExpert(
            settings, embedder=embedder, generator=generator, vector_store=store
        )
        closed = []
        monkeypatch.setattr(MetricsMonitor, "close", lambda self: closed.append(self))

        with pytest.raises(InitializationError):
            with TestClient(create_app(expert=service)):
                pass

        assert len(closed) == 1


class TestSessionStore:
    """Tests for the in-memory SessionStore."""

    def test_history_is_capped(self):
        """Test that only the newest max_messages are kept."""
        store = SessionStore(max_messages=3)
        for i in range(5):
            store.add_message("s1", "user", f"message {i}")

        history = store.get_history("s1")

        assert [msg["content"] for msg in history] == ["message 2", "message 3", "message 4"]

    @pytest.mark.parametrize("max_messages", [0, -1])
    def test_non_positive_cap_rejected(self, max_messages):
        """Test that a store that could never trim history is rejected."""
        with pytest.raises(ValueError):
            SessionStore(max_messages=max_messages)

    def test_stale_sessions_evicted(self):
        """Test that idle sessions past the TTL are dropped."""
        store = SessionStore(ttl_seconds=-1)
        store.add_message("s1", "user", "Hello")

        assert store.get_history("s1") == []
        assert len(store) == 0

    def test_unknown_session_is_empty(self):
        """Test that unknown and missing ids yield no history."""
        store = SessionStore()

        assert store.get_history("nope") == []
        assert store.get_history(None) == []
