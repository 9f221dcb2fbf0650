"""Request models (JSON-RPC envelopes and tool arguments) for the MCP server."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .documents import CamelModel
from .enums import ExportFormat

# ============ JSON-RPC ENVELOPES ============


class RpcRequest(BaseModel):
    """Fields shared by every JSON-RPC 2.0 request."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"] = "2.0"
    id: int | str | None = Field(default=None, description="Absent for notifications")


class ReadResourceParams(BaseModel):
    uri: str = Field(..., description="Resource URI, e.g. memory-bank://progress.md")


class CallToolParams(BaseModel):
    name: str = Field(..., description="Tool name")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


class GetPromptParams(BaseModel):
    name: str = Field(..., description="Prompt name")
    arguments: dict[str, str] | None = None


class InitializeRequest(RpcRequest):
    method: Literal["initialize"]
    params: dict[str, Any] = Field(default_factory=dict)


class PingRequest(RpcRequest):
    method: Literal["ping"]
    params: dict[str, Any] = Field(default_factory=dict)


class ListResourcesRequest(RpcRequest):
    method: Literal["resources/list"]
    params: dict[str, Any] = Field(default_factory=dict)


class ReadResourceRequest(RpcRequest):
    method: Literal["resources/read"]
    params: ReadResourceParams


class ListToolsRequest(RpcRequest):
    method: Literal["tools/list"]
    params: dict[str, Any] = Field(default_factory=dict)


class CallToolRequest(RpcRequest):
    method: Literal["tools/call"]
    params: CallToolParams


class ListPromptsRequest(RpcRequest):
    method: Literal["prompts/list"]
    params: dict[str, Any] = Field(default_factory=dict)


class GetPromptRequest(RpcRequest):
    method: Literal["prompts/get"]
    params: GetPromptParams


McpRequest = Annotated[
    Union[
        InitializeRequest,
        PingRequest,
        ListResourcesRequest,
        ReadResourceRequest,
        ListToolsRequest,
        CallToolRequest,
        ListPromptsRequest,
        GetPromptRequest,
    ],
    Field(discriminator="method"),
]

MCP_REQUEST_ADAPTER: TypeAdapter[McpRequest] = TypeAdapter(McpRequest)


# ============ TOOL ARGUMENTS ============


class UpdateMemoryFileArgs(CamelModel):
    """Arguments for update_memory_file."""

    file_type: str = Field(..., description="Memory bank file name")
    content: str = Field(..., description="New file content")


class ExportMemoryBankArgs(CamelModel):
    """Arguments for export_memory_bank."""

    format: ExportFormat = Field(default=ExportFormat.JSON, description="Export format")
    include_metadata: bool = Field(default=True, description="Include integrity metadata")
