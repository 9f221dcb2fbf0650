"""pytest configuration and fixtures."""

from __future__ import annotations

from collections import Counter
from typing import Any

import pytest
import pytest_asyncio

from memory_bank_mcp.config import PlatformConfig, ServerOptions
from memory_bank_mcp.mcp.dispatcher import ProtocolDispatcher
from memory_bank_mcp.metrics import DispatchMetrics
from memory_bank_mcp.models import Document, ExportOptions, OperationKind, SecurityDecision
from memory_bank_mcp.security import ContentValidator
from memory_bank_mcp.store import MemoryBankStore
from memory_bank_mcp.transport import SessionManager


class CountingStore(MemoryBankStore):
    """In-memory store that records every call and can be told to fail."""

    def __init__(self) -> None:
        super().__init__(folder=None, platform_name="test")
        self.calls: Counter[str] = Counter()
        self.fail_with: Exception | None = None

    def _record(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_with is not None:
            raise self.fail_with

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def list(self) -> list[Document]:
        self._record("list")
        return await super().list()

    async def get(self, doc_type: str) -> Document | None:
        self._record("get")
        return await super().get(doc_type)

    async def update(self, doc_type: str, content: str) -> Document:
        self._record("update")
        return await super().update(doc_type, content)

    async def export(self, options: ExportOptions) -> str:
        self._record("export")
        return await super().export(options)


class FakePolicy:
    """Security policy stub that records each check."""

    def __init__(self, allowed: bool = True, reason: str = "Denied by test policy", error: Exception | None = None):
        self.allowed = allowed
        self.reason = reason
        self.error = error
        self.calls: list[tuple[OperationKind, dict[str, Any]]] = []

    async def check(self, kind: OperationKind, payload: dict[str, Any]) -> SecurityDecision:
        self.calls.append((kind, payload))
        if self.error is not None:
            raise self.error
        if self.allowed:
            return SecurityDecision.allow()
        return SecurityDecision.deny(self.reason)


class FakeHost:
    """Platform host that keeps logs, events and integration calls in lists."""

    def __init__(self, name: str = "test") -> None:
        self._config = PlatformConfig(name=name, version="0.0.0-test")
        self.logs: list[tuple[str, str, dict | None]] = []
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.setup_calls: list[int] = []
        self.teardown_calls = 0

    @property
    def config(self) -> PlatformConfig:
        return self._config

    def log(self, level: str, message: str, meta: dict[str, Any] | None = None) -> None:
        self.logs.append((level, message, meta))

    def emit_event(self, name: str, payload: dict[str, Any]) -> None:
        self.events.append((name, payload))

    def event_names(self) -> list[str]:
        return [name for name, _ in self.events]

    async def setup_platform_integration(self, port: int) -> None:
        self.setup_calls.append(port)

    async def teardown_platform_integration(self) -> None:
        self.teardown_calls += 1


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def policy() -> FakePolicy:
    return FakePolicy()


@pytest.fixture
def empty_store() -> CountingStore:
    """A store that was never initialized; it lists no documents."""
    return CountingStore()


@pytest_asyncio.fixture
async def store() -> CountingStore:
    """An initialized in-memory store seeded from the templates, call counts reset."""
    s = CountingStore()
    await s.initialize()
    s.calls.clear()
    return s


@pytest.fixture
def metrics() -> DispatchMetrics:
    return DispatchMetrics()


@pytest.fixture
def dispatcher(store: CountingStore, policy: FakePolicy, host: FakeHost, metrics: DispatchMetrics) -> ProtocolDispatcher:
    return ProtocolDispatcher(store, policy, ContentValidator(), host, metrics=metrics)


@pytest.fixture
def options() -> ServerOptions:
    return ServerOptions(host="127.0.0.1", port=0, enable_metrics=True)


@pytest.fixture
def session_manager(dispatcher: ProtocolDispatcher, options: ServerOptions) -> SessionManager:
    return SessionManager(dispatcher, options.allowed_origins, keepalive_interval=0.05)


def rpc(method: str, params: dict[str, Any] | None = None, request_id: int | None = 1) -> dict[str, Any]:
    """Build a JSON-RPC request body."""
    body: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        body["params"] = params
    if request_id is not None:
        body["id"] = request_id
    return body


def tool_call(name: str, arguments: dict[str, Any] | None = None, request_id: int = 1) -> dict[str, Any]:
    return rpc("tools/call", {"name": name, "arguments": arguments or {}}, request_id)


def result_text(response: dict[str, Any]) -> str:
    return response["result"]["content"][0]["text"]
