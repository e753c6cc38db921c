# src/ragline/chunker/base.py
"""Chunker abstract base class."""

from abc import ABC, abstractmethod

from ragline.models import Chunk, ChunkingOptions


class Chunker(ABC):
    """Abstract base class for splitting document text into chunks."""

    @abstractmethod
    def chunk(
        self,
        document_id: str,
        content: str,
        filename: str,
        content_type: str,
        options: ChunkingOptions | None = None,
    ) -> list[Chunk]:
        """Split ``content`` into ordered chunks covering the whole input.

        Chunk ids and boundaries must be a pure function of the arguments.
        """
        ...
