# src/ragline/models/chunk.py
"""Chunk data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ChunkMetadata(BaseModel):
    """Provenance attached to every chunk.

    Serialised with camelCase keys (``documentId``, ``chunkIndex``) when
    written to the vector index.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: str
    section: str | None = None
    document_id: str = Field(alias="documentId")
    chunk_index: int = Field(alias="chunkIndex", ge=0)
    timestamp: str
    heading: str | None = None

    def to_index_metadata(self) -> dict[str, Any]:
        """Metadata dict for the vector index (camelCase keys, no None values)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Chunk(BaseModel):
    """A bounded span of document text, the unit of embedding."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    metadata: ChunkMetadata

    @staticmethod
    def make_id(document_id: str, chunk_index: int) -> str:
        """Deterministic chunk id for a document position."""
        return f"{document_id}-chunk-{chunk_index}"


class ChunkSize(BaseModel):
    """Target chunk sizes in characters."""

    text: int = Field(default=300, gt=0)
    code: int = Field(default=1000, gt=0)


class ChunkingOptions(BaseModel):
    """Options controlling how documents are split into chunks."""

    chunk_size: ChunkSize = Field(default_factory=ChunkSize, alias="chunkSize")
    overlap: int = Field(default=100, ge=0)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingOptions":
        smallest = min(self.chunk_size.text, self.chunk_size.code)
        if self.overlap >= smallest:
            raise ValueError(
                f"overlap ({self.overlap}) must be less than the smallest chunk size ({smallest})"
            )
        return self

    def target_size(self, is_code: bool) -> int:
        return self.chunk_size.code if is_code else self.chunk_size.text
