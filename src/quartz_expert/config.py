"""Configuration management for the Quartz Expert agent."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    # __file__ = src/quartz_expert/config.py -> .parent.parent.parent = repo root
    docs_path: Path = Path(__file__).parent.parent.parent / "docs"

    # Vector store
    # ":memory:" for an ephemeral store, "http://host:port" for a Chroma server,
    # anything else is a directory for a persistent store.
    store_connection: str = "./data/vectordb"
    collection_name: str = "quartz_documents"
    store_pool_size: int = Field(default=4, gt=0)

    # Embeddings
    embedding_model: str = "all-mpnet-base-v2"

    # LLM Provider (Anthropic Messages API)
    llm_api_key: str = ""
    llm_base_url: str | None = None
    llm_model: str = "claude-3-5-sonnet-latest"
    llm_max_tokens: int = 1024
    llm_timeout: float = Field(default=60.0, gt=0)  # seconds, per call
    llm_temperature: float = Field(default=0.7, gt=0, le=1)
    suggestion_max_tokens: int = 200

    # RAG
    chunk_size: int = Field(default=1000, gt=0)  # characters
    chunk_overlap: int = Field(default=200, ge=0)  # characters
    top_k: int = Field(default=5, gt=0)
    max_history_entries: int = Field(default=5, ge=0)
    context_window_chars: int = Field(default=8000, gt=0)

    # Sessions (HTTP adapter only)
    session_ttl_seconds: int = 3600

    # Cognitive-load monitor
    monitor_enabled: bool = True
    monitor_url: str = "http://localhost:3025"
    monitor_timeout: float = 2.0
    agent_id: str = "quartz-expert"

    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        return self


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
