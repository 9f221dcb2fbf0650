"""Envelopes and error codes for memory bank JSON-RPC responses.

Every response the dispatcher pushes onto an SSE stream is built here.
Failures raised as MemoryBankError carry their own ``jsonrpc_code``; the
envelope's ``data`` member then names the failure kind so clients can
branch on it without parsing messages::

    {"code": -32001, "message": "...", "data": {"type": "SECURITY_ERROR"}}

Protocol-level failures (unparseable envelope, unknown method) use the
reserved codes and carry no ``data``.
"""

from typing import Any


def jsonrpc_response(id: Any, result: Any) -> dict:
    """Wrap a tool, resource or prompt result for request ``id``."""
    return {"jsonrpc": "2.0", "id": id, "result": result}


def jsonrpc_error(id: Any, code: int, message: str, data: Any = None) -> dict:
    """Build an error envelope for request ``id``.

    ``id`` is None when the request id could not be read. ``data`` is
    omitted from the envelope when None; the dispatcher passes
    ``{"type": exc.code}`` for every MemoryBankError.
    """
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": id, "error": error}


# Reserved codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600  # envelope failed schema validation
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602  # SchemaError and the MemoryBankError default
INTERNAL_ERROR = -32603  # anything not raised as MemoryBankError
SERVER_ERROR = -32000

# Memory bank codes, one per MemoryBankError family
SECURITY_DENIED = -32001  # SecurityError: policy or validator rejection
NOT_FOUND = -32002  # NotFoundError and its unknown tool/prompt subclasses
STORE_ERROR = -32003  # StoreUnavailableError, StoreError
