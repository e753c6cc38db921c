# src/ragline/processor.py
"""Document processing pipeline for ragline."""

import logging
from collections.abc import Callable

from ragline.chunker import Chunker
from ragline.embedder import Embedder
from ragline.models import (
    Chunk,
    ChunkingOptions,
    EmbeddingVector,
    ProcessingResult,
    ProcessingStatus,
)
from ragline.stores import DocumentStatusStore, VectorStoreWriter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int, str], None]
"""Callback for processing progress updates.

Args:
    stage: Stage name - "chunking", "embedding", "storing" or "completed"
    current: Current progress count (0 to total)
    total: Total items in the stage
    message: Human-readable status message

Example:
    def on_progress(stage: str, current: int, total: int, message: str) -> None:
        print(f"[{stage}] {current}/{total}: {message}")
"""


class DocumentProcessor:
    """Orchestrates the processing pipeline for one document.

    Pipeline:
    1. status=chunking, clear the previous run's error and counts
    2. Chunk the document
    3. status=embedding with the chunk count
    4. Embed every chunk text (batched by the embedder)
    5. status=storing with the vector count
    6. Upsert vectors (batched by the writer)
    7. status=completed with the processing time

    Any failure sets status=error with the message and re-raises the
    original exception. Vectors already upserted are left in place.
    """

    def __init__(
        self,
        chunker: Chunker,
        embedder: Embedder,
        writer: VectorStoreWriter,
        status_store: DocumentStatusStore,
        default_options: ChunkingOptions | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            chunker: Splits documents into chunks
            embedder: Produces one vector per chunk
            writer: Writes vectors to the vector index
            status_store: Records processing status per document
            default_options: Chunking options used when none are saved
                in the status store
            on_progress: Optional callback(stage, current, total, message)
        """
        self.chunker = chunker
        self.embedder = embedder
        self.writer = writer
        self.status_store = status_store
        self.default_options = default_options or ChunkingOptions()
        self.on_progress = on_progress

    def _progress(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self.on_progress:
            self.on_progress(stage, current, total, message)

    def _build_vectors(
        self, chunks: list[Chunk], embeddings: list[list[float]]
    ) -> list[EmbeddingVector]:
        if len(chunks) != len(embeddings):
            raise RuntimeError(
                f"Embedding count mismatch: {len(chunks)} chunks, {len(embeddings)} embeddings"
            )
        return [
            EmbeddingVector(
                id=chunk.id,
                values=embedding,
                metadata={
                    **chunk.metadata.to_index_metadata(),
                    "text": chunk.text,
                    "embeddingModel": self.embedder.model,
                },
            )
            for chunk, embedding in zip(chunks, embeddings, strict=True)
        ]

    async def process_document(
        self,
        document_id: str,
        content: str,
        filename: str,
        content_type: str,
    ) -> ProcessingResult:
        """Chunk, embed and index a document, recording status along the way.

        Args:
            document_id: Id of the document being processed
            content: Full document text
            filename: Original filename
            content_type: MIME type of the document

        Returns:
            ProcessingResult with the chunks and vectors produced

        Raises:
            Whatever the failing stage raised, after status=error is recorded.
        """
        try:
            await self.status_store.set_status(document_id, ProcessingStatus.CHUNKING)
            await self.status_store.clear_error(document_id)

            options = await self.status_store.get_chunking_options(self.default_options)
            self._progress("chunking", 0, 1, f"Chunking {filename}...")
            chunks = self.chunker.chunk(document_id, content, filename, content_type, options)
            self._progress("chunking", 1, 1, f"Created {len(chunks)} chunks")

            await self.status_store.set_status(
                document_id, ProcessingStatus.EMBEDDING, chunk_count=len(chunks)
            )
            self._progress("embedding", 0, len(chunks), f"Embedding {len(chunks)} chunks...")
            embeddings = await self.embedder.aembed_texts([chunk.text for chunk in chunks])
            vectors = self._build_vectors(chunks, embeddings)
            self._progress("embedding", len(chunks), len(chunks), "Embedding complete")

            await self.status_store.set_status(
                document_id, ProcessingStatus.STORING, vector_count=len(vectors)
            )
            self._progress("storing", 0, len(vectors), f"Storing {len(vectors)} vectors...")
            await self.writer.upsert(vectors)
            self._progress("storing", len(vectors), len(vectors), "Storing complete")

            await self.status_store.set_status(document_id, ProcessingStatus.COMPLETED)
            self._progress("completed", 1, 1, f"Processed {filename}")
        except Exception as e:
            logger.exception("Processing failed for document %s", document_id)
            try:
                await self.status_store.set_status(
                    document_id, ProcessingStatus.ERROR, error=str(e) or type(e).__name__
                )
            except Exception:
                # The pipeline error is what the caller needs to see
                logger.exception("Could not record error status for document %s", document_id)
            raise

        logger.info(
            "Processed document %s: %d chunks, %d vectors",
            document_id,
            len(chunks),
            len(vectors),
        )
        return ProcessingResult(chunks=chunks, vectors=vectors)
