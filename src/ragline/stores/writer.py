# src/ragline/stores/writer.py
"""Batched, retrying writes to a vector index."""

import logging

from ragline.models import EmbeddingVector, IndexStats
from ragline.retry import RetryPolicy, retry_transient
from ragline.stores.base import MetadataFilter, VectorIndex

logger = logging.getLogger(__name__)

DEFAULT_UPSERT_BATCH_SIZE = 50


class VectorStoreWriter:
    """Writes vectors to a VectorIndex in sequential batches.

    Every index call goes through ``retry_transient``: rate limits, timeouts,
    network failures and server errors are retried; anything else fails on
    the first attempt. Batches already written stay written when a later
    batch fails, and re-running is safe because upserts are idempotent.
    """

    def __init__(
        self,
        index: VectorIndex,
        batch_size: int = DEFAULT_UPSERT_BATCH_SIZE,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.index = index
        self.batch_size = batch_size
        self.retry_policy = retry_policy

    async def upsert(self, vectors: list[EmbeddingVector], namespace: str | None = None) -> int:
        """Upsert vectors in batches of ``batch_size``.

        Returns:
            Total number of vectors the index reported as upserted.
        """
        total = 0
        total_batches = (len(vectors) + self.batch_size - 1) // self.batch_size

        for batch_number, start in enumerate(range(0, len(vectors), self.batch_size), 1):
            batch = vectors[start : start + self.batch_size]
            total += await retry_transient(
                lambda batch=batch: self.index.upsert(batch, namespace=namespace),
                self.retry_policy,
                name="vector upsert",
            )
            logger.info("Upserted batch %d/%d (%d vectors)", batch_number, total_batches, len(batch))

        return total

    async def delete_by_filter(self, filter: MetadataFilter, namespace: str | None = None) -> int:
        return await retry_transient(
            lambda: self.index.delete(filter=filter, namespace=namespace),
            self.retry_policy,
            name="vector delete",
        )

    async def delete_document(self, document_id: str, namespace: str | None = None) -> int:
        """Delete every vector belonging to a document."""
        deleted = await self.delete_by_filter({"documentId": {"$eq": document_id}}, namespace)
        logger.info("Deleted %d vectors for document %s", deleted, document_id)
        return deleted

    async def describe_index_stats(self) -> IndexStats:
        return await retry_transient(
            self.index.describe_index_stats,
            self.retry_policy,
            name="describe index stats",
        )
