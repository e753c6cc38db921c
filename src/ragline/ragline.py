# src/ragline/ragline.py
"""Central entry point for ragline."""

from __future__ import annotations

import logging
import os
import uuid
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ragline.chunker import SectionChunker
from ragline.exceptions import DocumentProcessingError
from ragline.models import DocumentRecord, ProcessingResult, SearchResult
from ragline.processor import DocumentProcessor
from ragline.retriever import Retriever
from ragline.settings import Settings
from ragline.stores import DocumentStatusStore, VectorStoreWriter

if TYPE_CHECKING:
    from ragline.chunker import Chunker
    from ragline.embedder import Embedder
    from ragline.processor import ProgressCallback
    from ragline.stores import KeyValueStore, MetadataFilter, VectorIndex

logger = logging.getLogger(__name__)


class Ragline:
    """Bundles the stores and pipeline components behind one object.

    There are two ways to create a Ragline instance:

    1. From settings, with local Chroma and SQLite storage:

        from ragline import Ragline, Settings

        rag = Ragline.from_settings(Settings(), data_dir="./ragline_data")
        record = await rag.register_document("guide.md", content_type="text/markdown")
        await rag.process_document(record.id, text)
        results = await rag.search("How do I authenticate?")

    2. With explicit components:

        rag = Ragline(
            embedder=ClientEmbedder(LiteLLMEmbeddingClient(...)),
            index=ChromaVectorIndex("./data/chroma"),
            kv_store=SQLiteKeyValueStore("./data/status.db"),
        )
    """

    def __init__(
        self,
        *,
        embedder: Embedder,
        index: VectorIndex,
        kv_store: KeyValueStore,
        settings: Settings | None = None,
        chunker: Chunker | None = None,
    ) -> None:
        """Create a Ragline instance.

        Args:
            embedder: Embedder used for chunks and queries
            index: Vector index holding chunk vectors
            kv_store: Key-value store for document metadata and status
            settings: Behavioral settings (batch sizes, chunk sizes, retries)
            chunker: Chunker implementation (default: SectionChunker)
        """
        self._settings = settings if settings is not None else Settings()
        self.embedder = embedder
        self.index = index
        self.kv_store = kv_store
        self.chunker = chunker or SectionChunker(self._settings.chunking_options())

        self.status_store = DocumentStatusStore(kv_store)
        self.writer = VectorStoreWriter(
            index,
            batch_size=self._settings.upsert_batch_size,
            retry_policy=self._settings.index_retry_policy(),
        )

    @classmethod
    def from_settings(cls, settings: Settings, data_dir: str | Path) -> Ragline:
        """Create Ragline with LiteLLM embeddings, Chroma and SQLite under ``data_dir``.

        Chroma runs against ``settings.chroma_host`` when set, otherwise a
        persistent directory ``{data_dir}/chroma``.
        """
        from ragline.embedder import ClientEmbedder
        from ragline.providers.litellm import LiteLLMEmbeddingClient
        from ragline.stores import ChromaVectorIndex, SQLiteKeyValueStore

        data_dir = str(data_dir)
        client = LiteLLMEmbeddingClient(
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
        )
        embedder = ClientEmbedder(
            embedding_client=client,
            dimensions=settings.embedding_dimensions,
            batch_size=settings.embedding_batch_size,
            batch_delay=settings.embedding_batch_delay,
            retry_policy=settings.embedding_retry_policy(),
        )
        index = ChromaVectorIndex(
            os.path.join(data_dir, "chroma"),
            collection_name=settings.collection_name,
            host=settings.chroma_host,
            port=settings.chroma_port,
            dimension=settings.embedding_dimensions,
        )
        kv_store = SQLiteKeyValueStore(os.path.join(data_dir, "status.db"))
        return cls(embedder=embedder, index=index, kv_store=kv_store, settings=settings)

    @property
    def settings(self) -> Settings:
        return self._settings

    def processor(self, on_progress: ProgressCallback | None = None) -> DocumentProcessor:
        """Create a DocumentProcessor bound to this instance's components."""
        return DocumentProcessor(
            chunker=self.chunker,
            embedder=self.embedder,
            writer=self.writer,
            status_store=self.status_store,
            default_options=self._settings.chunking_options(),
            on_progress=on_progress,
        )

    def retriever(self) -> Retriever:
        """Create a Retriever bound to this instance's index and embedder."""
        return Retriever(
            index=self.index,
            embedder=self.embedder,
            default_k=self._settings.default_k,
            retry_policy=self._settings.index_retry_policy(),
        )

    async def register_document(
        self,
        filename: str,
        *,
        content_type: str = "text/plain",
        size: int = 0,
        url: str | None = None,
        document_id: str | None = None,
    ) -> DocumentRecord:
        """Register a document with status ``uploaded``.

        Re-registering an existing id resets its metadata and status.
        """
        record = DocumentRecord(
            id=document_id or uuid.uuid4().hex,
            filename=filename,
            content_type=content_type,
            size=size,
            url=url,
        )
        await self.status_store.register(record)
        logger.info("Registered document %s (%s)", record.id, filename)
        return record

    async def process_document(
        self,
        document_id: str,
        content: str,
        on_progress: ProgressCallback | None = None,
    ) -> ProcessingResult:
        """Chunk, embed and index a registered document.

        Raises:
            DocumentNotFoundError: If the document is not registered.
            DocumentProcessingError: If the document is already being processed.
        """
        record = await self.status_store.get_document(document_id)
        if record.status.is_in_progress:
            raise DocumentProcessingError(
                document_id,
                f"Document {document_id} is already being processed "
                f"(status: {record.status.value})",
            )

        return await self.processor(on_progress).process_document(
            document_id, content, record.filename, record.content_type
        )

    async def search(
        self,
        query: str,
        top_k: int | None = None,
        filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        """Embed ``query`` and return deduplicated matches."""
        return await self.retriever().get_context(query, top_k=top_k, filter=filter)

    async def search_by_embedding(
        self,
        query_embedding: list[float],
        top_k: int | None = None,
        filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        return await self.retriever().search(query_embedding, top_k=top_k, filter=filter)

    async def get_document(self, document_id: str) -> DocumentRecord:
        return await self.status_store.get_document(document_id)

    async def list_documents(self) -> list[DocumentRecord]:
        return await self.status_store.list_documents()

    async def delete_document(self, document_id: str) -> int:
        """Delete a document's vectors, then its metadata and status.

        Returns:
            Number of vectors deleted.

        Raises:
            DocumentNotFoundError: If the document is not registered.
        """
        await self.status_store.get_document(document_id)
        deleted = await self.writer.delete_document(document_id)
        await self.status_store.delete_document(document_id)
        return deleted

    async def health(self) -> dict[str, Any]:
        """Index statistics and document counts by status."""
        stats = await self.writer.describe_index_stats()
        documents = await self.status_store.list_documents()
        by_status = Counter(doc.status.value for doc in documents)
        return {
            "index": stats.model_dump(),
            "documents": {
                "total": len(documents),
                "by_status": dict(by_status),
            },
            "embedding_model": self.embedder.model,
        }

    def close(self) -> None:
        """Release resources held by the vector index."""
        close = getattr(self.index, "close", None)
        if callable(close):
            close()
