"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Embedding
    embedding_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="HuggingFace sentence-transformer used for every embedding call",
    )
    embedding_device: str = "cpu"
    embedding_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Upper bound for model loading and for a single inference call",
    )

    # Corpus storage
    data_dir: Path = Path("pdf_data")

    # Chunking / retrieval
    min_chunk_chars: int = Field(default=50, ge=0)
    top_k: int = Field(default=3, ge=1)

    # Serving
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
