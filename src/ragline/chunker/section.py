# src/ragline/chunker/section.py
"""Heading-aware chunker with overlap and sentence break points."""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import PurePath

from ragline.chunker.base import Chunker
from ragline.models import Chunk, ChunkingOptions, ChunkMetadata

logger = logging.getLogger(__name__)

# How far back from a window end to look for a sentence or line break
BREAK_LOOKBACK = 100

SENTENCE_TERMINATORS = (".", "!", "?", "\n")

CODE_EXTENSIONS = frozenset(
    {
        ".py", ".js", ".ts", ".tsx", ".jsx", ".java", ".go", ".rs", ".c", ".cc",
        ".cpp", ".h", ".hpp", ".cs", ".rb", ".php", ".swift", ".kt", ".scala",
        ".sh", ".sql",
    }
)  # fmt: skip

CODE_CONTENT_TYPES = frozenset(
    {
        "application/javascript",
        "application/typescript",
        "application/x-python",
        "application/x-sh",
        "application/sql",
        "text/javascript",
        "text/x-python",
        "text/x-java-source",
        "text/x-c",
        "text/x-go",
        "text/x-rust",
        "text/x-shellscript",
    }
)

MARKDOWN_HEADING = re.compile(r"^#{1,6}\s+(.+?)(?:\s+#+)?\s*$")
HTML_HEADING = re.compile(r"<h([1-6])[^>]*>(.+?)</h\1>", re.IGNORECASE)
HTML_TAG = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class Section:
    """A run of lines under one heading (``heading`` is None before the first one)."""

    heading: str | None
    text: str


def is_code_like(filename: str, content_type: str) -> bool:
    """Whether a document should be chunked with the code chunk size."""
    normalized = (content_type or "").lower().split(";")[0].strip()
    if "code" in normalized or normalized in CODE_CONTENT_TYPES:
        return True
    return PurePath(filename or "").suffix.lower() in CODE_EXTENSIONS


def _match_heading(line: str) -> str | None:
    match = MARKDOWN_HEADING.match(line)
    if match:
        return match.group(1).strip()
    match = HTML_HEADING.search(line)
    if match:
        return HTML_TAG.sub("", match.group(2)).strip()
    return None


def split_into_sections(content: str) -> list[Section]:
    """Split content on markdown ATX or HTML heading lines.

    The heading line itself is not part of the section text. Sections whose
    text is empty are still returned; callers skip them.
    """
    sections: list[Section] = []
    current_heading: str | None = None
    current_lines: list[str] = []
    seen_heading = False

    for line in content.split("\n"):
        heading = _match_heading(line)
        if heading is None:
            current_lines.append(line)
            continue

        if current_lines or seen_heading:
            sections.append(Section(heading=current_heading, text="\n".join(current_lines)))
        current_heading = heading
        current_lines = []
        seen_heading = True

    if current_lines or seen_heading:
        sections.append(Section(heading=current_heading, text="\n".join(current_lines)))

    return sections


def find_break_point(text: str, start: int, end: int, lookback: int = BREAK_LOOKBACK) -> int:
    """Choose where a chunk window ending at ``end`` should be cut.

    Returns the position just after the last sentence terminator or newline
    found within the last ``lookback`` characters of the window, or ``end``
    when there is none. The result is always in ``(start, end]``.
    """
    if end >= len(text):
        return len(text)

    floor = max(end - lookback, start)
    best = -1
    for terminator in SENTENCE_TERMINATORS:
        best = max(best, text.rfind(terminator, floor + 1, end))

    if best > floor:
        return best + 1
    return end


class SectionChunker(Chunker):
    """Split documents into heading-delimited sections, then into windows.

    Sections that fit within the target size become a single chunk. Longer
    sections are cut into windows of at most ``target`` characters, preferring
    to end each window at a sentence or line break, with consecutive windows
    sharing ``overlap`` characters.

    Example:
        chunker = SectionChunker()
        chunks = chunker.chunk("doc-1", "# Intro\\nHello.", "intro.md", "text/markdown")
    """

    def __init__(
        self,
        options: ChunkingOptions | None = None,
        lookback: int = BREAK_LOOKBACK,
    ) -> None:
        """Initialize the chunker.

        Args:
            options: Default chunking options, used when ``chunk`` is called
                without options.
            lookback: Characters searched backwards from a window end for a
                break point.
        """
        self.options = options or ChunkingOptions()
        self.lookback = lookback

    def chunk(
        self,
        document_id: str,
        content: str,
        filename: str,
        content_type: str,
        options: ChunkingOptions | None = None,
        now: datetime | None = None,
    ) -> list[Chunk]:
        """Chunk a document.

        Args:
            document_id: Id of the document; prefixes every chunk id.
            content: Full document text.
            filename: Original filename, recorded as the chunk source.
            content_type: MIME type of the document.
            options: Chunking options (default: the chunker's options).
            now: Timestamp recorded on every chunk (default: current UTC time).

        Returns:
            Chunks in document order with a dense zero-based ``chunk_index``.
        """
        options = options or self.options
        is_code = is_code_like(filename, content_type)
        target = options.target_size(is_code)
        timestamp = (now or datetime.now(UTC)).isoformat()

        chunks: list[Chunk] = []
        for section in split_into_sections(content):
            for piece in self._split_section(section.text, target, options.overlap):
                index = len(chunks)
                chunks.append(
                    Chunk(
                        id=Chunk.make_id(document_id, index),
                        text=piece,
                        metadata=ChunkMetadata(
                            source=filename,
                            section=section.heading,
                            document_id=document_id,
                            chunk_index=index,
                            timestamp=timestamp,
                            heading=section.heading,
                        ),
                    )
                )

        logger.debug(
            "Chunked document %s into %d chunks (target=%d, code=%s)",
            document_id,
            len(chunks),
            target,
            is_code,
        )
        return chunks

    def _split_section(self, text: str, target: int, overlap: int) -> list[str]:
        """Split one section's text into trimmed, non-empty pieces."""
        if len(text) <= target:
            stripped = text.strip()
            return [stripped] if stripped else []

        pieces = []
        start = 0
        while start < len(text):
            end = min(start + target, len(text))
            break_point = find_break_point(text, start, end, self.lookback)

            piece = text[start:break_point].strip()
            if piece:
                pieces.append(piece)

            if break_point >= len(text):
                break

            # Step back for overlap, but always move forward
            next_start = break_point - overlap
            if next_start <= start:
                next_start = break_point
            start = next_start

        return pieces
