# src/ragline/exceptions.py
"""Exceptions raised by ragline components."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ragline.retry import ErrorKind


class RaglineError(Exception):
    """Base class for all ragline errors."""


class ProviderError(RaglineError):
    """Raised when an external service call (embedding, vector index) fails.

    Attributes:
        kind: Classified error kind, used to decide whether a retry is worthwhile.
        status_code: HTTP status code reported by the provider, if any.
        provider: Name of the provider that failed (e.g. "litellm", "chroma").
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.provider = provider


class EmbeddingDimensionError(RaglineError):
    """Raised when an embedding does not have the configured dimensionality.

    This is a configuration problem (wrong model or dimensions setting), so it
    is never retried.
    """

    def __init__(self, model: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}. Model: {model}"
        )
        self.model = model
        self.expected = expected
        self.actual = actual


class NotFoundError(RaglineError):
    """Raised when a requested resource does not exist."""


class DocumentNotFoundError(NotFoundError):
    """Raised when a document id is not registered."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class DocumentProcessingError(RaglineError):
    """Raised when a document cannot be processed in its current state."""

    def __init__(self, document_id: str, message: str) -> None:
        super().__init__(message)
        self.document_id = document_id
