# src/ragline/embedder/base.py
"""Embedder abstract base class."""

from abc import ABC, abstractmethod


class Embedder(ABC):
    """Abstract base class for embedding generation.

    Every vector returned has exactly ``dimensions`` components.
    """

    model: str
    dimensions: int

    @abstractmethod
    async def aembed_texts(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for multiple texts, order-preserving."""
        ...

    async def aembed_text(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text."""
        result = await self.aembed_texts([text])
        return result[0]
