# src/ragline/chunker/__init__.py
"""Document chunking for ragline."""

from ragline.chunker.base import Chunker
from ragline.chunker.section import (
    Section,
    SectionChunker,
    find_break_point,
    is_code_like,
    split_into_sections,
)

__all__ = [
    "Chunker",
    "Section",
    "SectionChunker",
    "find_break_point",
    "is_code_like",
    "split_into_sections",
]
