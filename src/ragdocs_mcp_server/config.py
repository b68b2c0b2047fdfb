"""
Server Configuration

All environment-derived configuration is resolved exactly once into a
``Settings`` instance. Components receive that instance through their
constructors; nothing below this module reads the environment directly.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Embedding provider: "ollama", "openai" or "google", checked by the factory
    embedding_provider: str = "ollama"
    embedding_model: Optional[str] = None

    ollama_url: str = "http://127.0.0.1:11434"

    openai_api_key: Optional[SecretStr] = None
    openai_base_url: Optional[str] = None

    gemini_api_key: Optional[SecretStr] = None

    # Vector store
    qdrant_url: str = "http://127.0.0.1:6333"
    qdrant_api_key: Optional[SecretStr] = None
    collection_name: str = "documentation"

    # Ingestion
    chunk_size: int = Field(default=1000, gt=0)
    upsert_batch_size: int = Field(default=100, gt=0)
    scroll_page_size: int = Field(default=100, gt=0)
    workspace_root: Optional[Path] = None

    # Queue draining
    queue_max_retries: int = Field(default=0, ge=0)
    queue_retry_delay: float = Field(default=1.0, ge=0.0)

    # Network
    http_timeout: float = Field(default=60.0, gt=0.0)
    page_load_timeout_ms: int = Field(default=60000, gt=0)

    search_score_threshold: Optional[float] = None

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    def resolved_workspace_root(self) -> Path:
        """Directory that local sources are resolved against and confined to."""
        root = self.workspace_root or Path.cwd()
        return Path(root).resolve()


@lru_cache
def get_settings() -> Settings:
    return Settings()
