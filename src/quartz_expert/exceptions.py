"""Exception hierarchy for the Quartz Expert agent.

Errors carry an optional ``details`` mapping so callers (and the HTTP adapter)
can log or surface context without parsing messages.
"""

from typing import Any


class QuartzExpertError(Exception):
    """Base exception for all Quartz Expert errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InitializationError(QuartzExpertError):
    """Raised when the vector store backend cannot be reached at startup."""


class IngestionError(QuartzExpertError):
    """Raised when a document cannot be read, parsed or stored."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, details)


class RetrievalError(QuartzExpertError):
    """Raised when the vector store is queried before it is ready."""


class GenerationError(QuartzExpertError):
    """Raised when a call to the generative model fails."""
