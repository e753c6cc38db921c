# src/ragline/settings.py
"""Configuration management for ragline.

Settings are passed programmatically; this module does not read environment
variables. ``ragline.config`` layers YAML files and ``RAGLINE_*`` env vars
on top for the CLI and for applications that want file-based config.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from ragline.models import ChunkingOptions, ChunkSize
from ragline.providers.litellm.models import EmbeddingModels
from ragline.retry import RetryPolicy


class Settings(BaseModel):
    """Behavioral settings for ragline.

    Example:
        settings = Settings(
            embedding_model="openai/text-embedding-3-small",
            embedding_dimensions=1536,
            chunk_size_text=500,
        )
    """

    # Embedding
    embedding_model: str = EmbeddingModels.TEXT_3_LARGE
    embedding_dimensions: int = Field(default=3072, gt=0)
    embedding_batch_size: int = Field(default=20, gt=0)
    embedding_batch_delay: float = Field(default=0.2, ge=0)

    # Vector index
    upsert_batch_size: int = Field(default=50, gt=0)
    collection_name: str = "ragline"
    chroma_host: str | None = None
    chroma_port: int = 8000

    # Chunking
    chunk_size_text: int = Field(default=300, gt=0)
    chunk_size_code: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=100, ge=0)

    # Retrieval
    default_k: int = Field(default=5, gt=0)

    # Retry
    num_retries: int = Field(default=3, ge=0)
    retry_min_timeout: float = Field(default=1.0, ge=0)
    retry_max_timeout: float = Field(default=30.0, ge=0)
    retry_factor: float = Field(default=2.0, ge=1)
    index_retry_max_timeout: float = Field(default=10.0, ge=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> Settings:
        smallest = min(self.chunk_size_text, self.chunk_size_code)
        if self.chunk_overlap >= smallest:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be less than the "
                f"smallest chunk size ({smallest})"
            )
        return self

    def chunking_options(self) -> ChunkingOptions:
        return ChunkingOptions(
            chunk_size=ChunkSize(text=self.chunk_size_text, code=self.chunk_size_code),
            overlap=self.chunk_overlap,
        )

    def embedding_retry_policy(self) -> RetryPolicy:
        """Retry policy for embedding requests."""
        return RetryPolicy(
            retries=self.num_retries,
            min_timeout=self.retry_min_timeout,
            max_timeout=self.retry_max_timeout,
            factor=self.retry_factor,
        )

    def index_retry_policy(self) -> RetryPolicy:
        """Retry policy for vector index calls (transient errors only)."""
        return RetryPolicy(
            retries=self.num_retries,
            min_timeout=self.retry_min_timeout,
            max_timeout=self.index_retry_max_timeout,
            factor=self.retry_factor,
        )
