# src/ragline/stores/chroma.py
"""ChromaDB vector index implementation."""

import asyncio
import contextlib
import json
import logging
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import chromadb
import httpx

from ragline.exceptions import ProviderError
from ragline.models import EmbeddingVector, IndexStats, VectorMatch
from ragline.retry import ErrorKind, classify_error, status_code_of
from ragline.stores.base import MetadataFilter, VectorIndex

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Namespaces are stored as a metadata field on each vector
NAMESPACE_KEY = "namespace"
DEFAULT_NAMESPACE = ""


def _metadata_value(value: Any) -> str | int | float | bool:
    """Coerce a metadata value to a type Chroma accepts."""
    if isinstance(value, str | int | float | bool):
        return value
    return json.dumps(value)


class ChromaVectorIndex(VectorIndex):
    """ChromaDB-backed vector index.

    Uses cosine distance; scores are reported as ``1 - distance`` so that
    higher means more similar. Runs against a local persistent directory, or
    a Chroma server when ``host`` is given. Chroma's client is synchronous, so
    every call runs in a worker thread.
    """

    def __init__(
        self,
        persist_dir: str | None = None,
        collection_name: str = "ragline",
        *,
        host: str | None = None,
        port: int = 8000,
        dimension: int | None = None,
    ) -> None:
        """Initialize the index.

        Args:
            persist_dir: Directory for an embedded persistent Chroma database.
            collection_name: Chroma collection holding the vectors.
            host: Chroma server host. Takes precedence over ``persist_dir``.
            port: Chroma server port.
            dimension: Expected vector dimension, reported in index stats.

        Raises:
            ValueError: If neither ``persist_dir`` nor ``host`` is given.
        """
        if host is not None:
            self._client = chromadb.HttpClient(host=host, port=port)
        elif persist_dir is not None:
            Path(persist_dir).mkdir(parents=True, exist_ok=True)
            self._client = chromadb.PersistentClient(path=persist_dir)
        else:
            raise ValueError("ChromaVectorIndex requires either persist_dir or host")

        self.collection_name = collection_name
        self.dimension = dimension
        self._collection = self._client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
        )

    def close(self) -> None:
        """Close the index and release resources.

        ChromaDB doesn't have an official close method, so we call the internal
        _system.stop() to release file handles.

        See: https://github.com/chroma-core/chroma/issues/5868
        """
        self._collection = None  # type: ignore[assignment]

        # ChromaDB lacks official close() - use internal _system.stop() workaround
        with contextlib.suppress(Exception):
            if self._client is not None and hasattr(self._client, "_system"):
                self._client._system.stop()

        self._client = None  # type: ignore[assignment]

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        """Run a synchronous Chroma call in a thread, classifying failures."""
        try:
            return await asyncio.to_thread(fn)
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"Chroma {operation} timed out: {e}", ErrorKind.TIMEOUT, None, "chroma"
            ) from e
        except httpx.TransportError as e:
            raise ProviderError(
                f"Chroma {operation} failed: {e}", ErrorKind.NETWORK, None, "chroma"
            ) from e
        except Exception as e:
            raise ProviderError(
                f"Chroma {operation} failed: {e}",
                classify_error(e),
                status_code_of(e),
                "chroma",
            ) from e

    @staticmethod
    def _where(filter: MetadataFilter | None, namespace: str | None) -> dict[str, Any]:
        """Combine a metadata filter with the namespace restriction."""
        clauses: list[dict[str, Any]] = [{NAMESPACE_KEY: namespace or DEFAULT_NAMESPACE}]
        for key, value in (filter or {}).items():
            if key == "$and":
                clauses.extend(value)
            else:
                clauses.append({key: value})
        if len(clauses) == 1:
            return clauses[0]
        return {"$and": clauses}

    async def query(
        self,
        vector: list[float],
        top_k: int,
        include_metadata: bool = True,
        filter: MetadataFilter | None = None,
        namespace: str | None = None,
    ) -> list[VectorMatch]:
        """Return up to ``top_k`` nearest vectors, most similar first."""
        where = self._where(filter, namespace)

        def run() -> list[VectorMatch]:
            count = self._collection.count()
            if count == 0 or top_k <= 0:
                return []

            results = self._collection.query(
                query_embeddings=[vector],  # type: ignore[arg-type]
                n_results=min(top_k, count),
                where=where,  # type: ignore[arg-type]
                include=["metadatas", "distances"],  # type: ignore[list-item]
            )

            ids = results["ids"][0]
            metadatas = (results["metadatas"] or [[]])[0]
            distances = (results["distances"] or [[]])[0]

            matches = []
            for vid, meta, dist in zip(ids, metadatas, distances, strict=True):
                metadata = None
                if include_metadata:
                    metadata = {k: v for k, v in (meta or {}).items() if k != NAMESPACE_KEY}
                # For cosine distance: similarity = 1 - distance
                matches.append(VectorMatch(id=vid, score=1.0 - dist, metadata=metadata))
            return matches

        return await self._call("query", run)

    async def upsert(self, vectors: list[EmbeddingVector], namespace: str | None = None) -> int:
        """Insert or overwrite vectors. Re-upserting an id replaces it in place."""
        if not vectors:
            return 0

        ids = [v.id for v in vectors]
        embeddings = [v.values for v in vectors]
        metadatas = [
            {
                **{k: _metadata_value(val) for k, val in v.metadata.items() if val is not None},
                NAMESPACE_KEY: namespace or DEFAULT_NAMESPACE,
            }
            for v in vectors
        ]

        def run() -> int:
            self._collection.upsert(
                ids=ids,
                embeddings=embeddings,  # type: ignore[arg-type]
                metadatas=metadatas,  # type: ignore[arg-type]
            )
            return len(ids)

        return await self._call("upsert", run)

    async def delete(
        self,
        ids: list[str] | None = None,
        filter: MetadataFilter | None = None,
        namespace: str | None = None,
    ) -> int:
        """Delete vectors by id and/or filter within a namespace.

        Raises:
            ValueError: If neither ids nor filter is given.
        """
        if ids is None and filter is None:
            raise ValueError("delete requires ids or filter")
        if ids is not None and not ids:
            return 0

        where = self._where(filter, namespace)

        def run() -> int:
            found = self._collection.get(
                ids=ids,
                where=where,  # type: ignore[arg-type]
                include=[],
            )["ids"]
            if found:
                self._collection.delete(ids=found)
            return len(found)

        return await self._call("delete", run)

    async def describe_index_stats(self) -> IndexStats:
        """Count vectors overall and per namespace."""

        def run() -> IndexStats:
            total = self._collection.count()
            namespaces: Counter[str] = Counter()
            dimension = self.dimension
            if total:
                results = self._collection.get(include=["metadatas"])  # type: ignore[list-item]
                for meta in results["metadatas"] or []:
                    namespaces[str((meta or {}).get(NAMESPACE_KEY, DEFAULT_NAMESPACE))] += 1
                if dimension is None:
                    sample = self._collection.get(limit=1, include=["embeddings"])  # type: ignore[list-item]
                    embeddings = sample["embeddings"]
                    if embeddings is not None and len(embeddings) > 0:
                        dimension = len(embeddings[0])
            return IndexStats(
                total_vector_count=total,
                dimension=dimension,
                namespaces=dict(namespaces),
            )

        return await self._call("describe_index_stats", run)
