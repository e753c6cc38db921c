# src/ragline/models/vector.py
"""Embedding vector model."""

from typing import Any

from pydantic import BaseModel, Field


class EmbeddingVector(BaseModel):
    """A chunk embedding ready to be written to the vector index.

    ``id`` matches the originating chunk id. ``metadata`` carries the chunk's
    provenance, its text and the identifier of the embedding model.
    """

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)
