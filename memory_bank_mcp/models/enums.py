"""Enumeration types for the memory bank server."""

from enum import StrEnum


class DocumentType(StrEnum):
    """The six memory bank files. Member order is the canonical document order."""

    PROJECT_BRIEF = "projectbrief.md"
    PRODUCT_CONTEXT = "productContext.md"
    ACTIVE_CONTEXT = "activeContext.md"
    SYSTEM_PATTERNS = "systemPatterns.md"
    TECH_CONTEXT = "techContext.md"
    PROGRESS = "progress.md"


class McpMethod(StrEnum):
    """JSON-RPC methods handled by the dispatcher."""

    INITIALIZE = "initialize"
    PING = "ping"
    RESOURCES_LIST = "resources/list"
    RESOURCES_READ = "resources/read"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    PROMPTS_LIST = "prompts/list"
    PROMPTS_GET = "prompts/get"


class ToolName(StrEnum):
    """Available memory bank tools."""

    UPDATE_MEMORY_FILE = "update_memory_file"
    GET_MEMORY_STATUS = "get_memory_status"
    EXPORT_MEMORY_BANK = "export_memory_bank"


class OperationKind(StrEnum):
    """Operation classes evaluated by the security policy."""

    READ = "read"
    WRITE = "write"
    COMMAND = "command"


class ExportFormat(StrEnum):
    JSON = "json"
    MARKDOWN = "markdown"


class ServerEvent(StrEnum):
    """Events emitted to the host platform."""

    FILE_UPDATED = "fileUpdated"
    SERVER_STARTED = "serverStarted"
    SERVER_STOPPED = "serverStopped"


class LogLevel(StrEnum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
