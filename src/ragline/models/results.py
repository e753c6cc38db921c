# src/ragline/models/results.py
"""Result data models for ragline operations."""

from typing import Any

from pydantic import BaseModel, Field

from ragline.models.chunk import Chunk
from ragline.models.vector import EmbeddingVector


class VectorMatch(BaseModel):
    """A raw nearest-neighbour match returned by the vector index."""

    id: str
    score: float
    metadata: dict[str, Any] | None = None


class SearchResult(BaseModel):
    """A retrieved chunk. Higher score = more relevant."""

    id: str
    score: float
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class IndexStats(BaseModel):
    """Vector index statistics used for health reporting."""

    total_vector_count: int
    dimension: int | None = None
    namespaces: dict[str, int] = Field(default_factory=dict)


class ProcessingResult(BaseModel):
    """Output of a successful document processing run."""

    chunks: list[Chunk]
    vectors: list[EmbeddingVector]
