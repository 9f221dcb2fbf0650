"""MCP tool, resource and prompt definitions for the memory bank.

This module contains the static descriptors returned by tools/list and
prompts/list. Input schemas are hints for clients only; the server validates
every argument itself.

Tools:
    - update_memory_file: Overwrite one memory bank file (security + validation gated)
    - get_memory_status: Aggregate size/timestamp view of the memory bank
    - export_memory_bank: Export all files as JSON or markdown
"""

from ..models import DocumentType, ExportFormat, ToolName

RESOURCE_URI_PREFIX = "memory-bank://"
RESOURCE_MIME_TYPE = "text/markdown"

MEMORY_CONTEXT_PROMPT = "memory_context"


def resource_uri(doc_type: str) -> str:
    return f"{RESOURCE_URI_PREFIX}{doc_type}"


TOOL_DEFINITIONS: list[dict] = [
    {
        "name": ToolName.UPDATE_MEMORY_FILE.value,
        "description": "Update a memory bank file with new content",
        "inputSchema": {
            "type": "object",
            "properties": {
                "fileType": {
                    "type": "string",
                    "enum": [t.value for t in DocumentType],
                    "description": "Memory bank file to overwrite",
                },
                "content": {"type": "string", "description": "New markdown content"},
            },
            "required": ["fileType", "content"],
        },
    },
    {
        "name": ToolName.GET_MEMORY_STATUS.value,
        "description": "Get the current status of the memory bank",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    },
    {
        "name": ToolName.EXPORT_MEMORY_BANK.value,
        "description": "Export memory bank data",
        "inputSchema": {
            "type": "object",
            "properties": {
                "format": {
                    "type": "string",
                    "enum": [f.value for f in ExportFormat],
                    "default": ExportFormat.JSON.value,
                },
                "includeMetadata": {"type": "boolean", "default": True},
            },
        },
    },
]

PROMPT_DEFINITIONS: list[dict] = [
    {
        "name": MEMORY_CONTEXT_PROMPT,
        "description": "Get current memory bank context for AI assistance",
    },
]
