"""Document store for the memory bank.

The server only depends on the DocumentStore protocol. MemoryBankStore is the
default implementation: one markdown file per DocumentType inside a
``memory-bank`` folder, seeded from templates on first use. Without a folder
it keeps documents in memory only.
"""

import asyncio
import hashlib
import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from . import __version__
from .errors import NotFoundError, StoreError
from .models import (
    Document,
    DocumentMetadata,
    DocumentType,
    ExportFormat,
    ExportOptions,
    utcnow,
)

logger = logging.getLogger(__name__)

MEMORY_BANK_FOLDER = "memory-bank"

TEMPLATES: dict[DocumentType, str] = {
    DocumentType.PROJECT_BRIEF: "# Project Brief\n\n## Overview\n\n## Goals\n\n## Scope\n\n## Timeline\n",
    DocumentType.PRODUCT_CONTEXT: (
        "# Product Context\n\n## User stories\n\n## Requirements\n\n## Constraints\n\n## Success criteria\n"
    ),
    DocumentType.ACTIVE_CONTEXT: (
        "# Active Context\n\n## Current task\n\n## Recent changes\n\n## Next steps\n\n## Blockers\n"
    ),
    DocumentType.SYSTEM_PATTERNS: (
        "# System Patterns\n\n## System architecture\n\n## Key technical decisions\n\n"
        "## Design patterns in use\n\n## Component relationships\n"
    ),
    DocumentType.TECH_CONTEXT: (
        "# Tech Context\n\n## Technologies used\n\n## Development setup\n\n"
        "## Technical constraints\n\n## Dependencies\n"
    ),
    DocumentType.PROGRESS: (
        "# Progress\n\n## What works\n\n## What's left to build\n\n## Current status\n\n## Known issues\n"
    ),
}


class DocumentStore(Protocol):
    """Collaborator interface the server calls. Failures raise StoreError."""

    async def initialize(self) -> None: ...

    async def list(self) -> list[Document]: ...

    async def get(self, doc_type: str) -> Document | None: ...

    async def update(self, doc_type: str, content: str) -> Document: ...

    async def export(self, options: ExportOptions) -> str: ...


def checksum(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def parse_document_type(value: str) -> DocumentType | None:
    try:
        return DocumentType(value)
    except ValueError:
        return None


class MemoryBankStore:
    """File-backed memory bank with template seeding."""

    def __init__(self, folder: Path | None = None, platform_name: str = "standalone"):
        self.folder = folder
        self.platform_name = platform_name
        self._documents: dict[DocumentType, Document] = {}
        self._lock = asyncio.Lock()

    @classmethod
    def for_workspace(cls, workspace: Path, platform_name: str = "standalone") -> "MemoryBankStore":
        return cls(Path(workspace) / MEMORY_BANK_FOLDER, platform_name=platform_name)

    async def initialize(self) -> None:
        """Load every document, creating missing files from templates."""
        async with self._lock:
            self._documents.clear()
            if self.folder is not None:
                try:
                    await asyncio.to_thread(self.folder.mkdir, parents=True, exist_ok=True)
                except OSError as e:
                    raise StoreError(f"Failed to initialize memory bank folder: {e}") from e

            for doc_type in DocumentType:
                self._documents[doc_type] = await self._load(doc_type)
        logger.info(f"Memory bank initialized with {len(self._documents)} files")

    async def _load(self, doc_type: DocumentType) -> Document:
        now = utcnow()
        if self.folder is None:
            return self._make_document(doc_type, TEMPLATES[doc_type], now, now, version=1)

        path = self.folder / doc_type.value
        try:
            if await asyncio.to_thread(path.exists):
                content = await asyncio.to_thread(path.read_text, encoding="utf-8")
                stat = await asyncio.to_thread(path.stat)
                mtime = datetime.fromtimestamp(stat.st_mtime, UTC)
                return self._make_document(doc_type, content, mtime, mtime, version=1)

            content = TEMPLATES[doc_type]
            await asyncio.to_thread(path.write_text, content, encoding="utf-8")
            logger.info(f"Created new memory bank file: {doc_type}")
            return self._make_document(doc_type, content, now, now, version=1)
        except OSError as e:
            raise StoreError(f"Failed to load memory bank file {doc_type}: {e}") from e

    @staticmethod
    def _make_document(
        doc_type: DocumentType,
        content: str,
        created_at: datetime,
        modified_at: datetime,
        version: int,
    ) -> Document:
        return Document(
            type=doc_type,
            content=content,
            last_updated=modified_at,
            metadata=DocumentMetadata(
                created_at=created_at,
                modified_at=modified_at,
                size=len(content),
                checksum=checksum(content),
                version=version,
            ),
        )

    async def list(self) -> list[Document]:
        return [self._documents[t] for t in DocumentType if t in self._documents]

    async def get(self, doc_type: str) -> Document | None:
        parsed = parse_document_type(doc_type)
        if parsed is None:
            return None
        return self._documents.get(parsed)

    async def update(self, doc_type: str, content: str) -> Document:
        parsed = parse_document_type(doc_type)
        if parsed is None:
            raise NotFoundError(f"File not found: {doc_type}")

        async with self._lock:
            if self.folder is not None:
                try:
                    await asyncio.to_thread(
                        (self.folder / parsed.value).write_text, content, encoding="utf-8"
                    )
                except OSError as e:
                    raise StoreError(f"Failed to write memory bank file {parsed}: {e}") from e

            now = utcnow()
            existing = self._documents.get(parsed)
            created_at = existing.metadata.created_at if existing and existing.metadata else now
            version = existing.metadata.version + 1 if existing and existing.metadata else 1
            document = self._make_document(parsed, content, created_at, now, version=version)
            self._documents[parsed] = document

        logger.info(f"Updated memory bank file: {parsed}")
        return document

    async def export(self, options: ExportOptions) -> str:
        documents = await self.list()
        files: list[dict[str, Any]] = []
        for doc in documents:
            entry: dict[str, Any] = {
                "type": doc.type.value,
                "content": doc.content,
                "lastUpdated": doc.last_updated.isoformat(),
            }
            if options.include_metadata and doc.metadata is not None:
                entry["metadata"] = doc.metadata.model_dump(mode="json", by_alias=True)
            files.append(entry)

        export_data = {
            "version": __version__,
            "timestamp": utcnow().isoformat(),
            "platform": self.platform_name,
            "files": files,
        }

        if options.format == ExportFormat.JSON:
            return json.dumps(export_data, indent=2)

        lines = [
            "# Memory Bank Export",
            "",
            f"**Exported:** {export_data['timestamp']}",
            f"**Platform:** {export_data['platform']}",
            f"**Version:** {export_data['version']}",
            "",
        ]
        for entry in files:
            lines += [
                f"## {entry['type']}",
                "",
                f"**Last Updated:** {entry['lastUpdated']}",
                "",
                entry["content"],
                "",
                "---",
                "",
            ]
        return "\n".join(lines)
