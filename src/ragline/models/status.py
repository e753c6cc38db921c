# src/ragline/models/status.py
"""Document processing status models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Ids become part of KV keys ("document:{id}:status") and glob patterns
RESERVED_ID_CHARS = frozenset(":*?[]")


def is_valid_document_id(document_id: str) -> bool:
    return bool(document_id) and not RESERVED_ID_CHARS.intersection(document_id)


class ProcessingStatus(str, Enum):
    """Pipeline stage of a document.

    Successful runs move strictly forward through
    uploaded -> chunking -> embedding -> storing -> completed.
    ERROR can be entered from any stage.
    """

    UPLOADED = "uploaded"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    STORING = "storing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.ERROR)

    @property
    def is_in_progress(self) -> bool:
        return self in (
            ProcessingStatus.CHUNKING,
            ProcessingStatus.EMBEDDING,
            ProcessingStatus.STORING,
        )

    def can_transition_to(self, target: "ProcessingStatus") -> bool:
        """Whether ``target`` is a legal next status.

        A terminal status may restart at CHUNKING (a new processing attempt).
        """
        if target is ProcessingStatus.ERROR:
            return True
        if target is ProcessingStatus.CHUNKING:
            return self is ProcessingStatus.UPLOADED or self.is_terminal
        if self is ProcessingStatus.ERROR:
            return False
        return _ORDER.index(target) == _ORDER.index(self) + 1


_ORDER = [
    ProcessingStatus.UPLOADED,
    ProcessingStatus.CHUNKING,
    ProcessingStatus.EMBEDDING,
    ProcessingStatus.STORING,
    ProcessingStatus.COMPLETED,
]


def _now() -> str:
    return datetime.now(UTC).isoformat()


class DocumentRecord(BaseModel):
    """A registered document and its current processing state."""

    id: str
    filename: str
    content_type: str = "text/plain"
    size: int = 0
    url: str | None = None
    uploaded_at: str = Field(default_factory=_now)
    status: ProcessingStatus = ProcessingStatus.UPLOADED
    chunk_count: int | None = None
    vector_count: int | None = None
    error: str | None = None
    processed_at: str | None = None

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        if not is_valid_document_id(value):
            raise ValueError(
                f"Invalid document id {value!r}: must be non-empty and must not "
                f"contain any of {''.join(sorted(RESERVED_ID_CHARS))}"
            )
        return value
