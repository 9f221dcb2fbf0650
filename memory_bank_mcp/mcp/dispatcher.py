"""JSON-RPC dispatcher for the memory bank MCP surface.

One handler per method, registered once at construction and looked up by
method at dispatch time. Handler failures are always converted into JSON-RPC
error objects carrying the error kind in ``data.type``; nothing escapes as an
unstructured exception.
"""

import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import ValidationError

from .. import __version__
from ..errors import (
    MemoryBankError,
    NotFoundError,
    SchemaError,
    SecurityError,
    StoreUnavailableError,
    UnknownPromptError,
    UnknownToolError,
)
from ..host import PlatformHost, build_event
from ..metrics import DispatchMetrics
from ..models import (
    EPOCH,
    MCP_REQUEST_ADAPTER,
    CallToolRequest,
    Document,
    DocumentType,
    ExportMemoryBankArgs,
    ExportOptions,
    FileStatus,
    GetPromptRequest,
    InitializeRequest,
    ListPromptsRequest,
    ListResourcesRequest,
    ListToolsRequest,
    McpMethod,
    MemoryStatus,
    OperationKind,
    PingRequest,
    ReadResourceRequest,
    ServerEvent,
    ToolName,
    UpdateMemoryFileArgs,
)
from ..security import SecurityPolicy, Validator
from ..store import DocumentStore
from .jsonrpc import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    jsonrpc_error,
    jsonrpc_response,
)
from .tool_defs import (
    MEMORY_CONTEXT_PROMPT,
    PROMPT_DEFINITIONS,
    RESOURCE_MIME_TYPE,
    RESOURCE_URI_PREFIX,
    TOOL_DEFINITIONS,
    resource_uri,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "memory-bank"

T = TypeVar("T")
Handler = Callable[[Any], Awaitable[dict]]

_DOCUMENT_ORDER = {doc_type: index for index, doc_type in enumerate(DocumentType)}


def _text_result(text: str, structured: dict | None = None) -> dict:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if structured is not None:
        result["structuredContent"] = structured
    return result


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "body"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


class ProtocolDispatcher:
    """Decodes JSON-RPC requests and routes them to memory bank handlers."""

    def __init__(
        self,
        store: DocumentStore,
        policy: SecurityPolicy,
        validator: Validator,
        host: PlatformHost,
        metrics: DispatchMetrics | None = None,
    ):
        self.store = store
        self.policy = policy
        self.validator = validator
        self.host = host
        self.metrics = metrics

        self._handlers: dict[McpMethod, Handler] = {
            McpMethod.INITIALIZE: self._initialize,
            McpMethod.PING: self._ping,
            McpMethod.RESOURCES_LIST: self._list_resources,
            McpMethod.RESOURCES_READ: self._read_resource,
            McpMethod.TOOLS_LIST: self._list_tools,
            McpMethod.TOOLS_CALL: self._call_tool,
            McpMethod.PROMPTS_LIST: self._list_prompts,
            McpMethod.PROMPTS_GET: self._get_prompt,
        }
        self._tools: dict[ToolName, Callable[[dict[str, Any]], Awaitable[dict]]] = {
            ToolName.UPDATE_MEMORY_FILE: self._update_memory_file,
            ToolName.GET_MEMORY_STATUS: self._get_memory_status,
            ToolName.EXPORT_MEMORY_BANK: self._export_memory_bank,
        }

        missing = set(McpMethod) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler registered for: {sorted(missing)}")
        missing_tools = set(ToolName) - set(self._tools)
        if missing_tools:
            raise RuntimeError(f"No tool handler registered for: {sorted(missing_tools)}")

    # ============ DISPATCH ============

    async def dispatch(self, body: dict[str, Any]) -> dict | None:
        """Handle one decoded JSON-RPC message.

        Returns the JSON-RPC response, or None for notifications.
        """
        request_id = body.get("id")
        method = body.get("method")

        if not isinstance(method, str):
            return jsonrpc_error(
                request_id, INVALID_REQUEST, "Invalid request: missing method", {"type": SchemaError.code}
            )

        try:
            verb = McpMethod(method)
        except ValueError:
            if request_id is None:
                # Unknown notifications (e.g. notifications/initialized) are ignored
                logger.debug(f"Ignoring notification: {method}")
                return None
            return jsonrpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        start_time = time.perf_counter()
        success = False
        try:
            try:
                request = MCP_REQUEST_ADAPTER.validate_python(body)
            except ValidationError as e:
                raise SchemaError(f"Invalid request for {method}: {_format_validation_error(e)}") from e

            result = await self._handlers[verb](request)
            success = True
            response = jsonrpc_response(request_id, result)
        except MemoryBankError as e:
            self.host.log("error", f"Error handling {method}: {e.message}", {"code": e.code})
            response = jsonrpc_error(request_id, e.jsonrpc_code, e.message, {"type": e.code})
        except Exception as e:
            logger.error(f"Unhandled error in {method}: {e}", exc_info=True)
            response = jsonrpc_error(
                request_id, INTERNAL_ERROR, "Internal error", {"type": "INTERNAL_ERROR"}
            )
        finally:
            if self.metrics is not None:
                latency_ms = (time.perf_counter() - start_time) * 1000
                self.metrics.record(method, latency_ms, success)

        if request_id is None:
            return None
        return response

    # ============ GATES ============

    async def _authorize(self, kind: OperationKind, payload: dict[str, Any]) -> None:
        """Run exactly one security policy evaluation; a failing policy is a denial."""
        try:
            decision = await self.policy.check(kind, payload)
        except Exception as e:
            logger.warning(f"Security policy raised during {kind} check: {e}")
            raise SecurityError(f"Security check failed: {e}") from e

        if not decision.allowed:
            raise SecurityError(decision.reason or f"{kind} operation denied by security policy")

    async def _from_store(self, awaitable: Awaitable[T], failure: str) -> T:
        """Await a store call, re-wrapping collaborator failures as StoreUnavailable."""
        try:
            return await awaitable
        except (NotFoundError, SecurityError, SchemaError):
            raise
        except Exception as e:
            logger.error(f"{failure}: {e}", exc_info=True)
            raise StoreUnavailableError(f"{failure}: {e}") from e

    # ============ LIFECYCLE METHODS ============

    async def _initialize(self, request: InitializeRequest) -> dict:
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
            "capabilities": {"resources": {}, "tools": {}, "prompts": {}, "logging": {}},
        }

    async def _ping(self, request: PingRequest) -> dict:
        return {}

    # ============ RESOURCES ============

    async def _list_resources(self, request: ListResourcesRequest) -> dict:
        documents = await self._from_store(
            self.store.list(), "Failed to list memory bank resources"
        )
        return {
            "resources": [
                {
                    "uri": resource_uri(doc.type),
                    "name": str(doc.type),
                    "description": f"Memory bank file: {doc.type}",
                    "mimeType": RESOURCE_MIME_TYPE,
                }
                for doc in documents
            ]
        }

    async def _read_resource(self, request: ReadResourceRequest) -> dict:
        uri = request.params.uri
        if not uri.startswith(RESOURCE_URI_PREFIX):
            raise SecurityError(f"Invalid resource URI: {uri}")

        file_type = uri[len(RESOURCE_URI_PREFIX) :]
        await self._authorize(OperationKind.READ, {"file_path": file_type})

        document = await self._from_store(
            self.store.get(file_type), f"Failed to read memory bank file {file_type}"
        )
        if document is None:
            raise NotFoundError(f"File not found: {file_type}")

        return {"contents": [{"uri": uri, "mimeType": RESOURCE_MIME_TYPE, "text": document.content}]}

    # ============ TOOLS ============

    async def _list_tools(self, request: ListToolsRequest) -> dict:
        return {"tools": TOOL_DEFINITIONS}

    async def _call_tool(self, request: CallToolRequest) -> dict:
        name = request.params.name
        try:
            tool = ToolName(name)
        except ValueError:
            raise UnknownToolError(f"Unknown tool: {name}") from None
        return await self._tools[tool](request.params.arguments)

    async def _update_memory_file(self, arguments: dict[str, Any]) -> dict:
        try:
            args = UpdateMemoryFileArgs.model_validate(arguments)
        except ValidationError as e:
            raise SchemaError(f"Invalid arguments for update_memory_file: {_format_validation_error(e)}") from e

        await self._authorize(
            OperationKind.WRITE, {"file_path": args.file_type, "content": args.content}
        )

        validation = self.validator.validate(args.content)
        if not validation.is_valid:
            raise SecurityError(
                f"Content validation failed: {', '.join(validation.errors)}",
                details=validation.errors,
            )

        content = validation.sanitized_content if validation.sanitized_content is not None else args.content
        await self._from_store(
            self.store.update(args.file_type, content),
            f"Failed to update memory bank file {args.file_type}",
        )

        self._emit(
            ServerEvent.FILE_UPDATED,
            {"fileType": args.file_type, "contentLength": len(content)},
        )
        return _text_result(f"Successfully updated {args.file_type}")

    async def _get_memory_status(self, arguments: dict[str, Any]) -> dict:
        documents = await self._from_store(self.store.list(), "Failed to read memory bank status")
        status = build_status(documents)
        payload = status.model_dump(mode="json", by_alias=True)
        return _text_result(f"Memory Bank Status:\n{json.dumps(payload, indent=2)}", payload)

    async def _export_memory_bank(self, arguments: dict[str, Any]) -> dict:
        try:
            args = ExportMemoryBankArgs.model_validate(arguments)
        except ValidationError as e:
            raise SchemaError(f"Invalid arguments for export_memory_bank: {_format_validation_error(e)}") from e

        await self._authorize(
            OperationKind.COMMAND,
            {
                "command": "memory.export",
                "args": [args.format.value, "true" if args.include_metadata else "false"],
            },
        )

        exported = await self._from_store(
            self.store.export(
                ExportOptions(
                    format=args.format,
                    include_metadata=args.include_metadata,
                    include_templates=False,
                    compression=False,
                )
            ),
            "Failed to export memory bank",
        )
        return _text_result(f"Memory bank exported in {args.format.value} format:\n\n{exported}")

    # ============ PROMPTS ============

    async def _list_prompts(self, request: ListPromptsRequest) -> dict:
        return {"prompts": PROMPT_DEFINITIONS}

    async def _get_prompt(self, request: GetPromptRequest) -> dict:
        if request.params.name != MEMORY_CONTEXT_PROMPT:
            raise UnknownPromptError(f"Unknown prompt: {request.params.name}")

        documents = await self._from_store(self.store.list(), "Failed to build memory context")
        ordered = sorted(documents, key=lambda doc: _DOCUMENT_ORDER[doc.type])
        context = "\n\n".join(f"## {doc.type}\n{doc.content}" for doc in ordered)
        return {
            "description": "Current memory bank context",
            "messages": [
                {
                    "role": "assistant",
                    "content": {
                        "type": "text",
                        "text": f"Here is the current memory bank context:\n\n{context}",
                    },
                }
            ],
        }

    # ============ EVENTS ============

    def _emit(self, event: ServerEvent, data: dict[str, Any]) -> None:
        try:
            self.host.emit_event(event.value, build_event(event.value, data))
        except Exception as e:
            logger.error(f"Failed to emit {event} event: {e}", exc_info=True)


def build_status(documents: list[Document]) -> MemoryStatus:
    """Aggregate document sizes and timestamps. An empty store reports the epoch."""
    last_modified = EPOCH
    for doc in documents:
        if doc.last_updated > last_modified:
            last_modified = doc.last_updated
    return MemoryStatus(
        initialized=len(documents) > 0,
        file_count=len(documents),
        total_size=sum(len(doc.content) for doc in documents),
        last_modified=last_modified,
        files=[
            FileStatus(type=doc.type, size=len(doc.content), last_updated=doc.last_updated)
            for doc in documents
        ],
    )
