"""In-memory session store for callers that do not keep their own history."""

import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Literal

from quartz_expert.core.session import ChatMessage


@dataclass
class Session:
    """A chat session with conversation history."""

    id: str
    history: list[ChatMessage] = field(default_factory=list)
    last_accessed: float = field(default_factory=time.time)


class SessionStore:
    """Holds session histories in process memory with TTL eviction."""

    def __init__(self, ttl_seconds: int = 3600, max_messages: int = 50):
        """Initialize the session store.

        Args:
            ttl_seconds: Time-to-live for idle sessions in seconds.
            max_messages: Messages kept per session; older ones are dropped.

        Raises:
            ValueError: If max_messages is not positive.
        """
        if max_messages <= 0:
            raise ValueError("max_messages must be positive")
        self._sessions: dict[str, Session] = {}
        self._lock = Lock()
        self._ttl = ttl_seconds
        self._max_messages = max_messages

    def get_history(self, session_id: str | None) -> list[ChatMessage]:
        """Return a copy of a session's history, empty for unknown ids."""
        with self._lock:
            self._cleanup_stale()
            if not session_id or session_id not in self._sessions:
                return []
            session = self._sessions[session_id]
            session.last_accessed = time.time()
            return list(session.history)

    def add_message(
        self, session_id: str, role: Literal["user", "assistant"], content: str
    ) -> None:
        """Append a message, creating the session on first use."""
        with self._lock:
            session = self._sessions.setdefault(session_id, Session(id=session_id))
            session.history.append({"role": role, "content": content})
            del session.history[: -self._max_messages]
            session.last_accessed = time.time()

    def clear(self, session_id: str) -> bool:
        """Delete a session. Returns True if it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _cleanup_stale(self):
        """Remove sessions that haven't been accessed within TTL."""
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.last_accessed > self._ttl
        ]
        for sid in stale:
            del self._sessions[sid]
