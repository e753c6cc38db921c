# src/ragline/models/__init__.py
"""Data models for ragline."""

from ragline.models.chunk import Chunk, ChunkingOptions, ChunkMetadata, ChunkSize
from ragline.models.results import IndexStats, ProcessingResult, SearchResult, VectorMatch
from ragline.models.status import DocumentRecord, ProcessingStatus
from ragline.models.vector import EmbeddingVector

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "ChunkSize",
    "ChunkingOptions",
    "DocumentRecord",
    "EmbeddingVector",
    "IndexStats",
    "ProcessingResult",
    "ProcessingStatus",
    "SearchResult",
    "VectorMatch",
]
