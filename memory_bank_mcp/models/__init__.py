"""Pydantic models for the memory bank MCP server.

This module re-exports all models for convenience.
Import from submodules directly for cleaner imports:

    from memory_bank_mcp.models.enums import DocumentType, ToolName
    from memory_bank_mcp.models.documents import Document
"""

# ============ DOCUMENT MODELS ============
from .documents import (
    EPOCH,
    Document,
    DocumentMetadata,
    ExportOptions,
    FileStatus,
    MemoryStatus,
    SecurityDecision,
    ValidationResult,
    utcnow,
)

# ============ ENUMS ============
from .enums import (
    DocumentType,
    ExportFormat,
    LogLevel,
    McpMethod,
    OperationKind,
    ServerEvent,
    ToolName,
)

# ============ REQUEST MODELS ============
from .requests import (
    MCP_REQUEST_ADAPTER,
    CallToolRequest,
    ExportMemoryBankArgs,
    GetPromptRequest,
    InitializeRequest,
    ListPromptsRequest,
    ListResourcesRequest,
    ListToolsRequest,
    McpRequest,
    PingRequest,
    ReadResourceRequest,
    RpcRequest,
    UpdateMemoryFileArgs,
)

# ============ RESPONSE MODELS ============
from .responses import AcceptedResponse, HealthResponse, ServerStatus

__all__ = [
    # Enums
    "DocumentType",
    "ExportFormat",
    "LogLevel",
    "McpMethod",
    "OperationKind",
    "ServerEvent",
    "ToolName",
    # Document models
    "EPOCH",
    "Document",
    "DocumentMetadata",
    "ExportOptions",
    "FileStatus",
    "MemoryStatus",
    "SecurityDecision",
    "ValidationResult",
    "utcnow",
    # Request models
    "MCP_REQUEST_ADAPTER",
    "CallToolRequest",
    "ExportMemoryBankArgs",
    "GetPromptRequest",
    "InitializeRequest",
    "ListPromptsRequest",
    "ListResourcesRequest",
    "ListToolsRequest",
    "McpRequest",
    "PingRequest",
    "ReadResourceRequest",
    "RpcRequest",
    "UpdateMemoryFileArgs",
    # Response models
    "AcceptedResponse",
    "HealthResponse",
    "ServerStatus",
]
