# src/ragline/retriever.py
"""Retrieval pipeline for ragline."""

import logging
from typing import Any

from ragline.embedder import Embedder
from ragline.models import SearchResult, VectorMatch
from ragline.retry import RetryPolicy, retry_transient
from ragline.stores import MetadataFilter, VectorIndex

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful assistant that answers questions based on the provided context.
Only use information from the context to answer the question.
Cite the sources you use with their bracketed numbers, e.g. [1].
If the context doesn't contain enough information to answer, say so.

Context:
{context}"""

NO_CONTEXT_PROMPT = "You are a helpful assistant that answers questions about documentation."


def deduplicate_by_section(results: list[SearchResult]) -> list[SearchResult]:
    """Keep the first result for each section, preserving order.

    Results without a section share the empty-string key, so at most one of
    them is kept.
    """
    seen: set[str] = set()
    deduplicated = []
    for result in results:
        section = result.metadata.get("section") or ""
        if section not in seen:
            seen.add(section)
            deduplicated.append(result)
    return deduplicated


class Retriever:
    """Orchestrates the retrieval pipeline.

    Queries the vector index, drops near-duplicate results from the same
    section, and assembles numbered context for a chat-completion call made
    elsewhere.
    """

    def __init__(
        self,
        index: VectorIndex,
        embedder: Embedder,
        default_k: int = 5,
        retry_policy: RetryPolicy | None = None,
        system_prompt: str | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            index: Vector index to query
            embedder: Embedder for query text
            default_k: Default number of matches to request from the index
            retry_policy: Retry configuration for index queries
            system_prompt: Custom system prompt template with a ``{context}`` field
        """
        self.index = index
        self.embedder = embedder
        self.default_k = default_k
        self.retry_policy = retry_policy
        self.system_prompt = system_prompt or SYSTEM_PROMPT

    @staticmethod
    def _to_result(match: VectorMatch) -> SearchResult:
        metadata = match.metadata or {}
        return SearchResult(
            id=match.id,
            score=match.score,
            text=str(metadata.get("text") or ""),
            metadata=metadata,
        )

    async def search(
        self,
        query_embedding: list[float],
        top_k: int | None = None,
        filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        """Search the index with a query embedding.

        Args:
            query_embedding: Vector of the query
            top_k: Number of matches to request (default: self.default_k)
            filter: Optional metadata filter

        Returns:
            Results ordered by descending score, at most one per section.
            May be fewer than ``top_k``.
        """
        top_k = self.default_k if top_k is None else top_k

        matches = await retry_transient(
            lambda: self.index.query(
                query_embedding, top_k, include_metadata=True, filter=filter
            ),
            self.retry_policy,
            name="vector query",
        )
        results = deduplicate_by_section([self._to_result(match) for match in matches])
        logger.debug("Search returned %d matches, %d after dedup", len(matches), len(results))
        return results

    async def get_context(
        self,
        query: str,
        top_k: int | None = None,
        filter: MetadataFilter | None = None,
    ) -> list[SearchResult]:
        """Embed a query and search the index with it."""
        query_embedding = await self.embedder.aembed_text(query)
        return await self.search(query_embedding, top_k=top_k, filter=filter)

    @staticmethod
    def build_context(results: list[SearchResult]) -> str:
        """Format results as numbered source blocks."""
        blocks = []
        for i, result in enumerate(results, 1):
            source = result.metadata.get("source") or "Unknown source"
            section = result.metadata.get("section") or "N/A"
            blocks.append(f"[{i}] {source}\nSection: {section}\nContent:\n{result.text}\n")
        return "\n\n".join(blocks)

    def build_messages(
        self,
        query: str,
        results: list[SearchResult],
        history: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, str]]:
        """Assemble chat messages for answering ``query`` from ``results``.

        Only user and assistant turns from ``history`` are kept.
        """
        if results:
            system = self.system_prompt.format(context=self.build_context(results))
        else:
            system = NO_CONTEXT_PROMPT

        messages = [{"role": "system", "content": system}]
        for message in history or []:
            if message.get("role") in ("user", "assistant"):
                messages.append({"role": message["role"], "content": str(message["content"])})
        messages.append({"role": "user", "content": query})
        return messages
