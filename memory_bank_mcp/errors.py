"""Error taxonomy for the memory bank server.

Every failure that crosses a component boundary is a MemoryBankError subclass
with a stable ``code``. The transport layer maps these codes to JSON-RPC
errors (for protocol requests) or HTTP status codes (for route failures).
"""

from typing import Any

from .mcp.jsonrpc import INVALID_PARAMS, NOT_FOUND, SECURITY_DENIED, STORE_ERROR


class MemoryBankError(Exception):
    """Base error carrying a stable machine-readable code."""

    code: str = "MEMORY_BANK_ERROR"
    jsonrpc_code: int = INVALID_PARAMS
    status_code: int = 400

    def __init__(self, message: str, code: str | None = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details


class SchemaError(MemoryBankError):
    """Request shape is malformed. Never retried; the client must fix its input."""

    code = "SCHEMA_ERROR"
    jsonrpc_code = INVALID_PARAMS


class SecurityError(MemoryBankError):
    """Policy denial, disallowed origin or rejected resource URI."""

    code = "SECURITY_ERROR"
    jsonrpc_code = SECURITY_DENIED
    status_code = 403


class NotFoundError(MemoryBankError):
    code = "FILE_NOT_FOUND"
    jsonrpc_code = NOT_FOUND


class UnknownToolError(NotFoundError):
    code = "UNKNOWN_TOOL"


class UnknownPromptError(NotFoundError):
    code = "UNKNOWN_PROMPT"


class NoActiveSessionError(MemoryBankError):
    """No SSE stream is open. Retryable once the client reconnects to /sse."""

    code = "NO_ACTIVE_SESSION"
    status_code = 503


class StoreUnavailableError(MemoryBankError):
    """The document store failed; surfaced to the client, not retried."""

    code = "STORE_UNAVAILABLE"
    jsonrpc_code = STORE_ERROR


class StoreError(MemoryBankError):
    """Raised by document store implementations."""

    code = "STORE_ERROR"
    jsonrpc_code = STORE_ERROR


class ServerStartError(MemoryBankError):
    code = "SERVER_START_ERROR"
    status_code = 500


class PortInUseError(ServerStartError):
    """The configured port is already bound. Callers may retry on another port."""

    code = "PORT_IN_USE"


class PayloadTooLargeError(MemoryBankError):
    """Request body exceeds the configured limit. Nothing is parsed or dispatched."""

    code = "PAYLOAD_TOO_LARGE"
    status_code = 413
