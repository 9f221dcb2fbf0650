"""Document, security and validation models for the memory bank."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import DocumentType, ExportFormat

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)


class CamelModel(BaseModel):
    """Base for payloads serialized to clients with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============ DOCUMENT MODELS ============


class DocumentMetadata(CamelModel):
    """Integrity and versioning metadata kept alongside each document."""

    created_at: datetime = Field(..., description="First time the document was seen")
    modified_at: datetime = Field(..., description="Last write time")
    size: int = Field(..., ge=0, description="Content length in characters")
    checksum: str = Field(..., description="SHA-256 of the content")
    version: int = Field(default=1, ge=1, description="Incremented on every write")


class Document(CamelModel):
    """One memory bank file. Identity is its type."""

    type: DocumentType = Field(..., description="Document type (file name)")
    content: str = Field(..., description="Markdown content")
    last_updated: datetime = Field(..., description="Last modification time")
    metadata: DocumentMetadata | None = Field(default=None, description="Integrity metadata")


class ExportOptions(BaseModel):
    """Options accepted by the document store's export operation."""

    format: ExportFormat = ExportFormat.JSON
    include_metadata: bool = True
    include_templates: bool = False
    compression: bool = False


# ============ STATUS MODELS ============


class FileStatus(CamelModel):
    type: DocumentType
    size: int = Field(..., ge=0)
    last_updated: datetime


class MemoryStatus(CamelModel):
    """Aggregate view returned by the get_memory_status tool."""

    initialized: bool = Field(default=False, description="True when at least one file exists")
    file_count: int = Field(default=0, ge=0, description="Number of documents")
    total_size: int = Field(default=0, ge=0, description="Sum of content lengths")
    last_modified: datetime = Field(default=EPOCH, description="Latest lastUpdated")
    files: list[FileStatus] = Field(default_factory=list)


# ============ SECURITY / VALIDATION MODELS ============


class SecurityDecision(BaseModel):
    """Outcome of one security policy evaluation. Never cached."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "SecurityDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "SecurityDecision":
        return cls(allowed=False, reason=reason)


class ValidationResult(BaseModel):
    """Result of validating content.

    ``sanitized_content`` is advisory: callers prefer it over the raw input
    whenever it is present, even if ``is_valid`` is True.
    """

    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    sanitized_content: str | None = None
