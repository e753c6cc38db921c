# src/ragline/stores/status.py
"""Document metadata and processing status on top of a key-value store."""

import logging
from datetime import UTC, datetime

from ragline.exceptions import DocumentNotFoundError
from ragline.models import ChunkingOptions, DocumentRecord, ProcessingStatus
from ragline.models.status import is_valid_document_id
from ragline.stores.base import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"

# Suffixes of per-document keys, e.g. "document:{id}:status"
STATUS = "status"
CHUNKS = "chunks"
VECTORS = "vectors"
ERROR = "error"
PROCESSED_AT = "processed-at"

RUN_SUFFIXES = (CHUNKS, VECTORS, ERROR, PROCESSED_AT)


def document_key(document_id: str, suffix: str | None = None) -> str:
    """Key for a document's metadata, or one of its status fields."""
    if suffix is None:
        return f"document:{document_id}"
    return f"document:{document_id}:{suffix}"


class DocumentStatusStore:
    """Tracks registered documents and their pipeline status.

    Key layout:
        document:{id}               document metadata
        document:{id}:status        ProcessingStatus value
        document:{id}:chunks        chunk count
        document:{id}:vectors       vector count
        document:{id}:error         error message of the last failed run
        document:{id}:processed-at  completion time of the last successful run
        settings                    chunking options override

    Each update is a single-key write; concurrent runs for the same document
    are not guarded here.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    async def register(self, record: DocumentRecord) -> DocumentRecord:
        """Store document metadata and set its status to ``record.status``.

        Raises:
            ValueError: If the id is empty or contains ``:`` or glob characters.
        """
        if not is_valid_document_id(record.id):
            raise ValueError(f"Invalid document id: {record.id!r}")
        metadata = record.model_dump(
            include={"id", "filename", "content_type", "size", "url", "uploaded_at"}
        )
        await self.kv.set(document_key(record.id), metadata)
        await self.kv.set(document_key(record.id, STATUS), record.status.value)
        return record

    async def _get_metadata(self, document_id: str) -> dict | None:
        # An id like "a:status" would otherwise address another document's key
        if not is_valid_document_id(document_id):
            return None
        return await self.kv.get(document_key(document_id))

    async def exists(self, document_id: str) -> bool:
        return await self._get_metadata(document_id) is not None

    async def get_document(self, document_id: str) -> DocumentRecord:
        """Load a document with its current status and counts.

        Raises:
            DocumentNotFoundError: If the document is not registered.
        """
        metadata = await self._get_metadata(document_id)
        if metadata is None:
            raise DocumentNotFoundError(document_id)

        status = await self.get_status(document_id) or ProcessingStatus.UPLOADED
        return DocumentRecord(
            **metadata,
            status=status,
            chunk_count=await self.kv.get(document_key(document_id, CHUNKS)),
            vector_count=await self.kv.get(document_key(document_id, VECTORS)),
            error=await self.kv.get(document_key(document_id, ERROR)),
            processed_at=await self.kv.get(document_key(document_id, PROCESSED_AT)),
        )

    async def list_documents(self) -> list[DocumentRecord]:
        """All registered documents, ordered by id."""
        keys = await self.kv.keys("document:*")
        # Registered ids never contain ":", so only metadata keys have one colon
        document_ids = [key.split(":", 1)[1] for key in keys if key.count(":") == 1]
        documents = []
        for document_id in document_ids:
            try:
                documents.append(await self.get_document(document_id))
            except DocumentNotFoundError:
                # Expired or deleted between listing and reading
                continue
        return documents

    async def get_status(self, document_id: str) -> ProcessingStatus | None:
        value = await self.kv.get(document_key(document_id, STATUS))
        return ProcessingStatus(value) if value is not None else None

    async def set_status(
        self,
        document_id: str,
        status: ProcessingStatus,
        *,
        chunk_count: int | None = None,
        vector_count: int | None = None,
        error: str | None = None,
    ) -> None:
        """Record a status transition and any counts that go with it."""
        current = await self.get_status(document_id)
        if current is not None and not current.can_transition_to(status):
            logger.warning(
                "Unexpected status transition for document %s: %s -> %s",
                document_id,
                current.value,
                status.value,
            )

        if chunk_count is not None:
            await self.kv.set(document_key(document_id, CHUNKS), chunk_count)
        if vector_count is not None:
            await self.kv.set(document_key(document_id, VECTORS), vector_count)
        if error is not None:
            await self.kv.set(document_key(document_id, ERROR), error)
        if status is ProcessingStatus.COMPLETED:
            await self.kv.set(
                document_key(document_id, PROCESSED_AT), datetime.now(UTC).isoformat()
            )
        await self.kv.set(document_key(document_id, STATUS), status.value)
        logger.info("Document %s status: %s", document_id, status.value)

    async def clear_error(self, document_id: str) -> None:
        """Clear counts and error left by a previous processing attempt."""
        await self.kv.delete(*(document_key(document_id, suffix) for suffix in RUN_SUFFIXES))

    async def delete_document(self, document_id: str) -> int:
        """Delete a document's metadata and all status keys."""
        keys = [document_key(document_id), document_key(document_id, STATUS)]
        keys.extend(document_key(document_id, suffix) for suffix in RUN_SUFFIXES)
        return await self.kv.delete(*keys)

    async def get_chunking_options(self, default: ChunkingOptions) -> ChunkingOptions:
        """Chunking options saved under the ``settings`` key, else ``default``."""
        saved = await self.kv.get(SETTINGS_KEY)
        if not saved:
            return default
        return ChunkingOptions.model_validate(saved)

    async def save_chunking_options(self, options: ChunkingOptions) -> None:
        await self.kv.set(SETTINGS_KEY, options.model_dump(by_alias=True))
