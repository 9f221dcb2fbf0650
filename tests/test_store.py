"""Tests for the file-backed memory bank store."""

from __future__ import annotations

import json

import pytest

from memory_bank_mcp.errors import NotFoundError
from memory_bank_mcp.models import DocumentType, ExportFormat, ExportOptions
from memory_bank_mcp.store import TEMPLATES, MemoryBankStore, checksum, parse_document_type


class TestMemoryBankStore:
    """MemoryBankStore with and without a backing folder."""

    @pytest.mark.asyncio
    async def test_initialize_creates_missing_files(self, tmp_path) -> None:
        store = MemoryBankStore.for_workspace(tmp_path)
        await store.initialize()

        folder = tmp_path / "memory-bank"
        for doc_type in DocumentType:
            assert (folder / doc_type.value).read_text(encoding="utf-8") == TEMPLATES[doc_type]

    @pytest.mark.asyncio
    async def test_initialize_keeps_existing_content(self, tmp_path) -> None:
        folder = tmp_path / "memory-bank"
        folder.mkdir()
        (folder / "progress.md").write_text("# Already here\n", encoding="utf-8")

        store = MemoryBankStore(folder)
        await store.initialize()

        assert (await store.get("progress.md")).content == "# Already here\n"

    @pytest.mark.asyncio
    async def test_list_before_initialize_is_empty(self) -> None:
        assert await MemoryBankStore().list() == []

    @pytest.mark.asyncio
    async def test_list_in_document_order(self) -> None:
        store = MemoryBankStore()
        await store.initialize()

        assert [doc.type for doc in await store.list()] == list(DocumentType)

    @pytest.mark.asyncio
    async def test_update_writes_file_and_bumps_version(self, tmp_path) -> None:
        store = MemoryBankStore.for_workspace(tmp_path)
        await store.initialize()
        before = await store.get("activeContext.md")

        updated = await store.update("activeContext.md", "# Now\n")

        assert (tmp_path / "memory-bank" / "activeContext.md").read_text(encoding="utf-8") == "# Now\n"
        assert updated.metadata.version == before.metadata.version + 1
        assert updated.metadata.created_at == before.metadata.created_at
        assert updated.metadata.checksum == checksum("# Now\n")
        assert updated.metadata.size == len("# Now\n")

    @pytest.mark.asyncio
    async def test_unknown_type(self) -> None:
        store = MemoryBankStore()
        await store.initialize()

        assert await store.get("notes.md") is None
        with pytest.raises(NotFoundError):
            await store.update("notes.md", "x")

    @pytest.mark.asyncio
    async def test_in_memory_store_writes_nothing(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        store = MemoryBankStore()
        await store.initialize()
        await store.update("progress.md", "done")

        assert list(tmp_path.iterdir()) == []
        assert (await store.get("progress.md")).content == "done"

    @pytest.mark.asyncio
    async def test_json_export(self) -> None:
        store = MemoryBankStore(platform_name="cli")
        await store.initialize()

        exported = json.loads(await store.export(ExportOptions(format=ExportFormat.JSON)))

        assert exported["platform"] == "cli"
        assert [f["type"] for f in exported["files"]] == [t.value for t in DocumentType]
        assert exported["files"][0]["metadata"]["checksum"] == checksum(TEMPLATES[DocumentType.PROJECT_BRIEF])

    @pytest.mark.asyncio
    async def test_json_export_without_metadata(self) -> None:
        store = MemoryBankStore()
        await store.initialize()

        exported = json.loads(await store.export(ExportOptions(include_metadata=False)))

        assert all("metadata" not in f for f in exported["files"])

    @pytest.mark.asyncio
    async def test_markdown_export(self) -> None:
        store = MemoryBankStore()
        await store.initialize()
        await store.update("progress.md", "Shipped the store.")

        exported = await store.export(ExportOptions(format=ExportFormat.MARKDOWN))

        assert exported.startswith("# Memory Bank Export\n")
        assert "## progress.md" in exported
        assert "Shipped the store." in exported


def test_parse_document_type() -> None:
    assert parse_document_type("techContext.md") is DocumentType.TECH_CONTEXT
    assert parse_document_type("techcontext.md") is None
