# tests/stores/test_status.py
"""Tests for the document status store."""

import pytest

from ragline.exceptions import DocumentNotFoundError
from ragline.models import ChunkingOptions, ChunkSize, DocumentRecord, ProcessingStatus
from ragline.stores import DocumentStatusStore


@pytest.fixture
def status_store(kv_store):
    return DocumentStatusStore(kv_store)


def make_record(document_id: str = "doc-1", filename: str = "guide.md") -> DocumentRecord:
    return DocumentRecord(
        id=document_id,
        filename=filename,
        content_type="text/markdown",
        size=42,
        url="file:///guide.md",
    )


class TestDocumentStatusStore:
    @pytest.mark.asyncio
    async def test_register_and_get(self, status_store, kv_store):
        await status_store.register(make_record())

        doc = await status_store.get_document("doc-1")

        assert doc.filename == "guide.md"
        assert doc.content_type == "text/markdown"
        assert doc.size == 42
        assert doc.status is ProcessingStatus.UPLOADED
        assert doc.chunk_count is None
        assert await kv_store.get("document:doc-1:status") == "uploaded"

    @pytest.mark.asyncio
    async def test_get_missing_document(self, status_store):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await status_store.get_document("nope")
        assert exc_info.value.document_id == "nope"

    @pytest.mark.asyncio
    async def test_exists(self, status_store):
        assert not await status_store.exists("doc-1")
        await status_store.register(make_record())
        assert await status_store.exists("doc-1")

    @pytest.mark.asyncio
    async def test_list_documents_ignores_status_keys(self, status_store):
        await status_store.register(make_record("b"))
        await status_store.register(make_record("a"))
        await status_store.set_status("a", ProcessingStatus.CHUNKING)
        await status_store.kv.set("settings", {"overlap": 10})

        docs = await status_store.list_documents()

        assert [d.id for d in docs] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_register_rejects_reserved_id(self, status_store):
        record = make_record()
        record.id = "team:guide"

        with pytest.raises(ValueError, match="Invalid document id"):
            await status_store.register(record)

        assert await status_store.list_documents() == []

    @pytest.mark.asyncio
    async def test_status_key_is_not_a_document(self, status_store):
        await status_store.register(make_record("a"))

        assert not await status_store.exists("a:status")
        with pytest.raises(DocumentNotFoundError):
            await status_store.get_document("a:status")
        assert [d.id for d in await status_store.list_documents()] == ["a"]

    @pytest.mark.asyncio
    async def test_set_status_with_counts(self, status_store, kv_store):
        await status_store.register(make_record())
        await status_store.set_status("doc-1", ProcessingStatus.CHUNKING)
        await status_store.set_status("doc-1", ProcessingStatus.EMBEDDING, chunk_count=3)
        await status_store.set_status("doc-1", ProcessingStatus.STORING, vector_count=3)
        await status_store.set_status("doc-1", ProcessingStatus.COMPLETED)

        doc = await status_store.get_document("doc-1")

        assert doc.status is ProcessingStatus.COMPLETED
        assert doc.chunk_count == 3
        assert doc.vector_count == 3
        assert doc.processed_at is not None
        assert await kv_store.get("document:doc-1:chunks") == 3
        assert await kv_store.get("document:doc-1:vectors") == 3

    @pytest.mark.asyncio
    async def test_error_status(self, status_store, kv_store):
        await status_store.register(make_record())
        await status_store.set_status("doc-1", ProcessingStatus.ERROR, error="boom")

        doc = await status_store.get_document("doc-1")

        assert doc.status is ProcessingStatus.ERROR
        assert doc.error == "boom"
        assert await kv_store.get("document:doc-1:error") == "boom"

    @pytest.mark.asyncio
    async def test_clear_error(self, status_store):
        await status_store.register(make_record())
        await status_store.set_status("doc-1", ProcessingStatus.ERROR, error="boom", chunk_count=2)

        await status_store.clear_error("doc-1")

        doc = await status_store.get_document("doc-1")
        assert doc.error is None
        assert doc.chunk_count is None

    @pytest.mark.asyncio
    async def test_unexpected_transition_is_logged(self, status_store, caplog):
        await status_store.register(make_record())
        await status_store.set_status("doc-1", ProcessingStatus.STORING)

        assert "Unexpected status transition" in caplog.text
        assert await status_store.get_status("doc-1") is ProcessingStatus.STORING

    @pytest.mark.asyncio
    async def test_delete_document(self, status_store, kv_store):
        await status_store.register(make_record())
        await status_store.set_status("doc-1", ProcessingStatus.EMBEDDING, chunk_count=1)

        assert await status_store.delete_document("doc-1") == 3
        assert await kv_store.keys("document:doc-1*") == []
        assert not await status_store.exists("doc-1")

    @pytest.mark.asyncio
    async def test_chunking_options_default(self, status_store):
        default = ChunkingOptions()
        assert await status_store.get_chunking_options(default) is default

    @pytest.mark.asyncio
    async def test_chunking_options_round_trip(self, status_store, kv_store):
        options = ChunkingOptions(chunk_size=ChunkSize(text=500, code=1200), overlap=50)

        await status_store.save_chunking_options(options)

        assert await kv_store.get("settings") == {
            "chunkSize": {"text": 500, "code": 1200},
            "overlap": 50,
        }
        assert await status_store.get_chunking_options(ChunkingOptions()) == options
