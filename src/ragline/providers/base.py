# src/ragline/providers/base.py
"""Abstract base class for embedding providers."""

from abc import ABC, abstractmethod


class EmbeddingClient(ABC):
    """Abstract base class for embedding providers.

    Implementations make exactly one request per call and leave retrying to
    the caller. Failures should be raised as ``ProviderError`` with a
    classified ``ErrorKind`` so the retry layer can decide what to do.

    Example:
        class MyEmbeddingClient(EmbeddingClient):
            model = "my-model"

            async def aembed(self, texts):
                return await my_api.embed_batch(texts)
    """

    model: str

    @abstractmethod
    async def aembed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for multiple texts.

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding vectors, one per input text.
            Order is preserved (result[i] corresponds to texts[i]).
        """
        ...
