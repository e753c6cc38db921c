# src/ragline/stores/__init__.py
"""Storage backends for ragline."""

from ragline.stores.base import KeyValueStore, MetadataFilter, VectorIndex
from ragline.stores.chroma import ChromaVectorIndex
from ragline.stores.sqlite_kv import SQLiteKeyValueStore
from ragline.stores.status import DocumentStatusStore
from ragline.stores.writer import VectorStoreWriter

__all__ = [
    "ChromaVectorIndex",
    "DocumentStatusStore",
    "KeyValueStore",
    "MetadataFilter",
    "SQLiteKeyValueStore",
    "VectorIndex",
    "VectorStoreWriter",
]
