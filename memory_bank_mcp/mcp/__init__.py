"""MCP (Model Context Protocol) module.

This module contains components for the MCP SSE transport:
- Tool and prompt definitions for tools/list and prompts/list
- JSON-RPC 2.0 helpers
- Request dispatcher (depends on the error module, import from .dispatcher directly)
"""

from .jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    NOT_FOUND,
    PARSE_ERROR,
    SECURITY_DENIED,
    SERVER_ERROR,
    STORE_ERROR,
    jsonrpc_error,
    jsonrpc_response,
)
from .tool_defs import PROMPT_DEFINITIONS, RESOURCE_URI_PREFIX, TOOL_DEFINITIONS

# Note: ProtocolDispatcher imports ..errors, which imports .jsonrpc, so it is
# not imported at module level. Import directly when needed:
#   from memory_bank_mcp.mcp.dispatcher import ProtocolDispatcher

__all__ = [
    # Definitions
    "TOOL_DEFINITIONS",
    "PROMPT_DEFINITIONS",
    "RESOURCE_URI_PREFIX",
    # JSON-RPC helpers
    "jsonrpc_response",
    "jsonrpc_error",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "SERVER_ERROR",
    "SECURITY_DENIED",
    "NOT_FOUND",
    "STORE_ERROR",
]
