"""Shared pytest fixtures."""

import contextlib
import math
import os
import tempfile
from typing import Any

import pytest

from ragline.embedder import Embedder
from ragline.models import EmbeddingVector, IndexStats, VectorMatch
from ragline.providers import EmbeddingClient
from ragline.retry import RetryPolicy
from ragline.stores import SQLiteKeyValueStore, VectorIndex

# Retry policy without delays, for tests that exercise retries
NO_DELAY = RetryPolicy(retries=3, min_timeout=0.0, max_timeout=0.0, jitter=None)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for stores."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir

        # Cleanup ChromaDB's shared system cache to release file handles
        # See: https://github.com/chroma-core/chroma/issues/5868
        try:
            from chromadb.api.shared_system_client import SharedSystemClient

            if hasattr(SharedSystemClient, "_identifier_to_system"):
                identifiers_to_remove = [
                    identifier
                    for identifier in list(SharedSystemClient._identifier_to_system.keys())
                    if tmpdir in str(identifier)
                ]
                for identifier in identifiers_to_remove:
                    if identifier in SharedSystemClient._identifier_to_system:
                        system = SharedSystemClient._identifier_to_system.pop(identifier)
                        with contextlib.suppress(Exception):
                            system.stop()
        except Exception:
            pass  # Best effort cleanup - ChromaDB internals may change


class FakeEmbeddingClient(EmbeddingClient):
    """Embedding client that returns deterministic vectors and records calls.

    Exceptions queued in ``failures`` are raised, one per call, before any
    call succeeds.
    """

    def __init__(self, dimensions: int = 4, model: str = "fake/embedding") -> None:
        self.model = model
        self.dimensions = dimensions
        self.calls: list[list[str]] = []
        self.failures: list[Exception] = []

    async def aembed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.failures:
            raise self.failures.pop(0)
        return [fake_vector(text, self.dimensions) for text in texts]


def fake_vector(text: str, dimensions: int = 4) -> list[float]:
    """Deterministic unit vector derived from the text."""
    raw = [float((sum(map(ord, text)) * (i + 1)) % 17 + 1) for i in range(dimensions)]
    norm = math.sqrt(sum(x * x for x in raw))
    return [x / norm for x in raw]


class FakeEmbedder(Embedder):
    """Embedder returning ``fake_vector`` for each text."""

    def __init__(self, dimensions: int = 4) -> None:
        self.model = "fake/embedding"
        self.dimensions = dimensions
        self.calls: list[list[str]] = []

    async def aembed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [fake_vector(text, self.dimensions) for text in texts]


def _matches(metadata: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    for key, condition in (filter or {}).items():
        if isinstance(condition, dict):
            if "$eq" in condition and metadata.get(key) != condition["$eq"]:
                return False
            if "$in" in condition and metadata.get(key) not in condition["$in"]:
                return False
        elif metadata.get(key) != condition:
            return False
    return True


class FakeVectorIndex(VectorIndex):
    """In-memory vector index scoring by dot product.

    ``upsert_failures`` and ``query_failures`` hold exceptions raised, one per
    call, before calls succeed. ``query_matches`` overrides query results.
    """

    def __init__(self) -> None:
        self.vectors: dict[tuple[str, str], EmbeddingVector] = {}
        self.upsert_calls: list[list[str]] = []
        self.query_calls = 0
        self.upsert_failures: list[Exception] = []
        self.query_failures: list[Exception] = []
        self.query_matches: list[VectorMatch] | None = None

    async def query(
        self,
        vector: list[float],
        top_k: int,
        include_metadata: bool = True,
        filter: dict[str, Any] | None = None,
        namespace: str | None = None,
    ) -> list[VectorMatch]:
        self.query_calls += 1
        if self.query_failures:
            raise self.query_failures.pop(0)
        if self.query_matches is not None:
            return self.query_matches[:top_k]

        ns = namespace or ""
        scored = [
            VectorMatch(
                id=v.id,
                score=sum(a * b for a, b in zip(vector, v.values, strict=True)),
                metadata=dict(v.metadata) if include_metadata else None,
            )
            for (vns, _), v in self.vectors.items()
            if vns == ns and _matches(v.metadata, filter)
        ]
        scored.sort(key=lambda m: m.score, reverse=True)
        return scored[:top_k]

    async def upsert(self, vectors: list[EmbeddingVector], namespace: str | None = None) -> int:
        self.upsert_calls.append([v.id for v in vectors])
        if self.upsert_failures:
            raise self.upsert_failures.pop(0)
        for v in vectors:
            self.vectors[(namespace or "", v.id)] = v
        return len(vectors)

    async def delete(
        self,
        ids: list[str] | None = None,
        filter: dict[str, Any] | None = None,
        namespace: str | None = None,
    ) -> int:
        ns = namespace or ""
        doomed = [
            key
            for key, v in self.vectors.items()
            if key[0] == ns
            and (ids is None or v.id in ids)
            and (filter is None or _matches(v.metadata, filter))
        ]
        for key in doomed:
            del self.vectors[key]
        return len(doomed)

    async def describe_index_stats(self) -> IndexStats:
        namespaces: dict[str, int] = {}
        for ns, _ in self.vectors:
            namespaces[ns] = namespaces.get(ns, 0) + 1
        return IndexStats(
            total_vector_count=len(self.vectors),
            dimension=None,
            namespaces=namespaces,
        )


@pytest.fixture
def fake_client():
    return FakeEmbeddingClient()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_index():
    return FakeVectorIndex()


@pytest.fixture
def kv_store(temp_dir):
    """SQLite key-value store in a temporary directory."""
    return SQLiteKeyValueStore(os.path.join(temp_dir, "status.db"))


@pytest.fixture
def no_delay():
    """Retry policy with three retries and no waiting."""
    return NO_DELAY
