"""ragline - document ingestion and retrieval for RAG.

Splits documents into heading-aware chunks, embeds them in rate-limited
batches, stores the vectors in an index and tracks per-document processing
status. Retrieval embeds a query, searches the index and deduplicates
results by section.

Quick Start:
    from ragline import Ragline, Settings

    rag = Ragline.from_settings(Settings(), data_dir="./ragline_data")
    record = await rag.register_document("guide.md", content_type="text/markdown")
    await rag.process_document(record.id, open("guide.md").read())
    results = await rag.search("How do I authenticate?")

Explicit components:
    from ragline import Ragline
    from ragline.embedder import ClientEmbedder
    from ragline.providers.litellm import LiteLLMEmbeddingClient
    from ragline.stores import ChromaVectorIndex, SQLiteKeyValueStore

    rag = Ragline(
        embedder=ClientEmbedder(LiteLLMEmbeddingClient("openai/text-embedding-3-large")),
        index=ChromaVectorIndex("./data/chroma"),
        kv_store=SQLiteKeyValueStore("./data/status.db"),
    )
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ragline")
except PackageNotFoundError:
    # Running from a source tree without an install
    __version__ = "unknown"

from ragline.chunker import Chunker, SectionChunker
from ragline.embedder import ClientEmbedder, Embedder
from ragline.exceptions import (
    DocumentNotFoundError,
    DocumentProcessingError,
    EmbeddingDimensionError,
    NotFoundError,
    ProviderError,
    RaglineError,
)
from ragline.models import (
    Chunk,
    ChunkingOptions,
    ChunkMetadata,
    ChunkSize,
    DocumentRecord,
    EmbeddingVector,
    IndexStats,
    ProcessingResult,
    ProcessingStatus,
    SearchResult,
    VectorMatch,
)
from ragline.processor import DocumentProcessor, ProgressCallback
from ragline.ragline import Ragline
from ragline.retriever import Retriever
from ragline.retry import ErrorKind, RetryPolicy, retry, retry_transient
from ragline.settings import Settings
from ragline.stores import (
    ChromaVectorIndex,
    DocumentStatusStore,
    KeyValueStore,
    SQLiteKeyValueStore,
    VectorIndex,
    VectorStoreWriter,
)

__all__ = [
    "__version__",
    # Central
    "Ragline",
    "Settings",
    # Pipeline
    "Chunker",
    "SectionChunker",
    "Embedder",
    "ClientEmbedder",
    "DocumentProcessor",
    "ProgressCallback",
    "Retriever",
    # Retry
    "ErrorKind",
    "RetryPolicy",
    "retry",
    "retry_transient",
    # Stores
    "VectorIndex",
    "KeyValueStore",
    "ChromaVectorIndex",
    "SQLiteKeyValueStore",
    "DocumentStatusStore",
    "VectorStoreWriter",
    # Models
    "Chunk",
    "ChunkMetadata",
    "ChunkSize",
    "ChunkingOptions",
    "DocumentRecord",
    "EmbeddingVector",
    "IndexStats",
    "ProcessingResult",
    "ProcessingStatus",
    "SearchResult",
    "VectorMatch",
    # Exceptions
    "RaglineError",
    "ProviderError",
    "EmbeddingDimensionError",
    "NotFoundError",
    "DocumentNotFoundError",
    "DocumentProcessingError",
]
