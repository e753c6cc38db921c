# src/ragline/stores/base.py
"""Abstract base classes for storage."""

from abc import ABC, abstractmethod
from typing import Any

from ragline.models import EmbeddingVector, IndexStats, VectorMatch

MetadataFilter = dict[str, Any]


class VectorIndex(ABC):
    """Abstract base class for a nearest-neighbour vector index.

    Filters use the Mongo-style operators shared by Pinecone and Chroma,
    e.g. ``{"documentId": {"$eq": "doc-1"}}``.
    """

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        include_metadata: bool = True,
        filter: MetadataFilter | None = None,
        namespace: str | None = None,
    ) -> list[VectorMatch]:
        """Return up to ``top_k`` matches ordered by descending score."""
        ...

    @abstractmethod
    async def upsert(self, vectors: list[EmbeddingVector], namespace: str | None = None) -> int:
        """Insert or overwrite vectors by id. Returns the number upserted."""
        ...

    @abstractmethod
    async def delete(
        self,
        ids: list[str] | None = None,
        filter: MetadataFilter | None = None,
        namespace: str | None = None,
    ) -> int:
        """Delete vectors by id or metadata filter. Returns the number deleted."""
        ...

    @abstractmethod
    async def describe_index_stats(self) -> IndexStats:
        """Total vector count, dimension and per-namespace counts."""
        ...


class KeyValueStore(ABC):
    """Abstract base class for the metadata/status key-value store.

    Values are JSON-serialisable. Patterns use glob syntax (``document:*``).
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value, or None if the key is missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Set a value, optionally expiring after ``ttl`` seconds."""
        ...

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys. Returns the number of keys that existed."""
        ...

    @abstractmethod
    async def keys(self, pattern: str = "*") -> list[str]:
        """List live keys matching a glob pattern."""
        ...
