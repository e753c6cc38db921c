# src/ragline/embedder/client.py
"""Client-based batch embedder implementation."""

import asyncio
import logging

from ragline.embedder.base import Embedder
from ragline.exceptions import EmbeddingDimensionError, ProviderError
from ragline.providers.base import EmbeddingClient
from ragline.retry import ErrorKind, RetryPolicy, retry

logger = logging.getLogger(__name__)

DEFAULT_DIMENSIONS = 3072
DEFAULT_BATCH_SIZE = 20
DEFAULT_BATCH_DELAY = 0.2


class ClientEmbedder(Embedder):
    """Embedder that calls an EmbeddingClient in sequential, bounded batches.

    Each batch request goes through the retry policy. Returned vectors are
    checked against ``dimensions``; a mismatch raises EmbeddingDimensionError
    and is not retried. A short fixed delay separates consecutive batches.

    Example:
        from ragline.providers.litellm import LiteLLMEmbeddingClient
        from ragline.embedder import ClientEmbedder

        client = LiteLLMEmbeddingClient(model="openai/text-embedding-3-large", dimensions=3072)
        embedder = ClientEmbedder(embedding_client=client, dimensions=3072)
        vectors = await embedder.aembed_texts(["first", "second"])
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        dimensions: int = DEFAULT_DIMENSIONS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the embedder.

        Args:
            embedding_client: Any EmbeddingClient implementation
            dimensions: Required length of every embedding vector
            batch_size: Maximum number of texts per provider request
            batch_delay: Seconds to wait between batches (not after the last)
            retry_policy: Retry configuration for provider requests

        Raises:
            ValueError: If dimensions or batch_size is not positive
        """
        if dimensions <= 0:
            raise ValueError(f"dimensions must be positive, got {dimensions}")
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._client = embedding_client
        self.dimensions = dimensions
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.retry_policy = retry_policy

    @property
    def model(self) -> str:  # type: ignore[override]
        return self._client.model

    def _validate(self, embeddings: list[list[float]]) -> None:
        for embedding in embeddings:
            if len(embedding) != self.dimensions:
                raise EmbeddingDimensionError(self.model, self.dimensions, len(embedding))

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        embeddings = await retry(
            lambda: self._client.aembed(batch),
            self.retry_policy,
            name=f"embedding request ({self.model})",
        )
        if len(embeddings) != len(batch):
            raise ProviderError(
                f"Embedding count mismatch: sent {len(batch)} texts, "
                f"received {len(embeddings)} embeddings. Model: {self.model}",
                ErrorKind.SERVER,
            )
        self._validate(embeddings)
        return embeddings

    async def aembed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed texts in sequential batches of ``batch_size``.

        Returns:
            One vector per input text, in input order.

        Raises:
            EmbeddingDimensionError: If any vector has the wrong length.
            ProviderError: If a batch still fails after retries.
        """
        if not texts:
            return []

        embeddings: list[list[float]] = []
        total_batches = (len(texts) + self.batch_size - 1) // self.batch_size

        for batch_number, start in enumerate(range(0, len(texts), self.batch_size), 1):
            batch = texts[start : start + self.batch_size]
            logger.debug(
                "Embedding batch %d/%d (%d texts) with %s",
                batch_number,
                total_batches,
                len(batch),
                self.model,
            )
            embeddings.extend(await self._embed_batch(batch))

            if batch_number < total_batches and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        return embeddings
