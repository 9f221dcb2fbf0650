"""Security policy evaluation.

Every read, write and command-class operation is evaluated independently:
the server never caches a decision and never elevates trust based on earlier
successful calls.
"""

import logging
import os
from pathlib import Path, PurePath
from typing import Any, Protocol

from ..config import SecurityConfig
from ..models import OperationKind, SecurityDecision

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("memory_bank_mcp.audit")

MAX_FILENAME_LENGTH = 255
MAX_ARGUMENT_LENGTH = 1000

PROTECTED_FILES = (".gitignore", ".git", "node_modules", "package.json", "package-lock.json")

ALLOWED_COMMANDS = frozenset(
    {
        "memory.get",
        "memory.update",
        "memory.list",
        "memory.export",
        "memory.import",
        "server.start",
        "server.stop",
        "server.status",
    }
)

SHELL_OPERATORS = (";", "|", "&", "`")


class SecurityPolicy(Protocol):
    """Collaborator interface: evaluate one operation, return allow or a denial."""

    async def check(self, kind: OperationKind, payload: dict[str, Any]) -> SecurityDecision: ...


def log_security_event(event: str, kind: str, payload: dict[str, Any], reason: str | None = None) -> None:
    """Write one audit record. Content bodies are never logged, only their size."""
    details = {k: v for k, v in payload.items() if k != "content"}
    if "content" in payload:
        details["content_length"] = len(payload["content"] or "")
    audit_logger.info(f"Security audit: {event} kind={kind} details={details} reason={reason}")


class AccessControlPolicy:
    """Path, extension, size and command-whitelist rules for the memory bank."""

    def __init__(self, config: SecurityConfig, memory_bank_dir: Path):
        self.config = config
        self.memory_bank_dir = Path(os.path.abspath(memory_bank_dir))
        workspace = self.memory_bank_dir.parent
        self.allowed_roots: list[Path] = [self.memory_bank_dir]
        for allowed in config.allowed_paths:
            path = Path(allowed)
            root = path if path.is_absolute() else workspace / path
            self.allowed_roots.append(Path(os.path.abspath(root)))

    async def check(self, kind: OperationKind, payload: dict[str, Any]) -> SecurityDecision:
        match kind:
            case OperationKind.READ:
                reason = self._check_read(payload)
            case OperationKind.WRITE:
                reason = self._check_write(payload)
            case OperationKind.COMMAND:
                reason = self._check_command(payload)
            case _:
                reason = f"Unknown operation: {kind}"

        if reason is None:
            log_security_event("security_check_passed", str(kind), payload)
            return SecurityDecision.allow()

        log_security_event("security_check_failed", str(kind), payload, reason)
        return SecurityDecision.deny(reason)

    # ============ FILE OPERATIONS ============

    def _validate_path(self, file_path: Any) -> str | None:
        if not isinstance(file_path, str) or not file_path:
            return "File path must be a non-empty string"
        if "\x00" in file_path:
            return "File path contains null bytes"
        if ".." in PurePath(file_path.replace("\\", "/")).parts:
            return "File path contains directory traversal sequences"
        if len(PurePath(file_path).name) > MAX_FILENAME_LENGTH:
            return f"Filename exceeds maximum length of {MAX_FILENAME_LENGTH} characters"
        if not self.can_access_path(file_path):
            return "File path is outside allowed directory"
        return None

    def can_access_path(self, file_path: str) -> bool:
        resolved = Path(os.path.abspath(self.memory_bank_dir / file_path))
        return any(resolved == root or root in resolved.parents for root in self.allowed_roots)

    def _check_read(self, payload: dict[str, Any]) -> str | None:
        file_path = payload.get("file_path")
        error = self._validate_path(file_path)
        if error:
            return f"Read access denied for path {file_path!r}: {error}"
        return None

    def _check_write(self, payload: dict[str, Any]) -> str | None:
        file_path = payload.get("file_path")
        error = self._validate_path(file_path)
        if error:
            return f"Write access denied for path {file_path!r}: {error}"

        name = PurePath(file_path).name
        extension = PurePath(name).suffix.lower()
        if extension not in self.config.allowed_extensions:
            return f"Write access denied for path {file_path!r}: extension '{extension}' is not allowed"
        if any(protected in name for protected in PROTECTED_FILES):
            return f"Write access denied for protected file: {name}"

        content = payload.get("content")
        if content is not None and len(content) > self.config.max_file_size:
            return f"File size exceeds limit of {self.config.max_file_size} bytes"
        return None

    # ============ COMMANDS ============

    def _check_command(self, payload: dict[str, Any]) -> str | None:
        command = payload.get("command")
        args = payload.get("args") or []

        errors: list[str] = []
        if not isinstance(command, str) or not command:
            errors.append("Command must be a non-empty string")
        else:
            if any(op in command for op in SHELL_OPERATORS):
                errors.append("Command contains dangerous shell operators")
            if command not in ALLOWED_COMMANDS:
                errors.append(f"Command '{command}' is not allowed")

        for i, arg in enumerate(args):
            if not isinstance(arg, str):
                errors.append(f"Argument {i} must be a string")
                continue
            if any(op in arg for op in SHELL_OPERATORS):
                errors.append(f"Argument {i} contains dangerous characters")
            if len(arg) > MAX_ARGUMENT_LENGTH:
                errors.append(f"Argument {i} exceeds maximum length")

        if errors:
            return f"Command validation failed: {', '.join(errors)}"

        if command == "memory.export" and "--include-sensitive" in args:
            return "Sensitive data export is not allowed"
        if command == "server.start" and args:
            port = args[0]
            if not port.isdigit() or not 1024 <= int(port) <= 65535:
                return "Invalid port number for server start"
        return None
