"""Tests for the server lifecycle controller."""

from __future__ import annotations

import socket
from unittest.mock import patch

import httpx
import pytest
from conftest import CountingStore, FakeHost, FakePolicy

from memory_bank_mcp.config import ServerOptions, Settings
from memory_bank_mcp.errors import PortInUseError, ServerStartError
from memory_bank_mcp.server import MemoryBankServer, parse_args
from memory_bank_mcp.transport import SessionState


class FailingSetupHost(FakeHost):
    """Host whose integration hook fails until ``fail`` is cleared."""

    def __init__(self) -> None:
        super().__init__()
        self.fail = True

    async def setup_platform_integration(self, port: int) -> None:
        await super().setup_platform_integration(port)
        if self.fail:
            raise RuntimeError("extension host unreachable")


class OrderRecordingHost(FakeHost):
    """Host that records server state at teardown and at each event."""

    def __init__(self) -> None:
        super().__init__()
        self.server: MemoryBankServer | None = None
        self.port = 0
        self.accepting_at_teardown: bool | None = None
        self.running_at_teardown: bool | None = None
        self.running_at_event: list[bool] = []

    async def teardown_platform_integration(self) -> None:
        await super().teardown_platform_integration()
        self.accepting_at_teardown = _accepts_connections(self.port)
        self.running_at_teardown = self.server.is_running

    def emit_event(self, name: str, payload: dict) -> None:
        super().emit_event(name, payload)
        self.running_at_event.append(self.server.is_running)


def _accepts_connections(port: int) -> bool:
    try:
        with socket.create_connection(("127.0.0.1", port), timeout=1):
            return True
    except OSError:
        return False


@pytest.fixture
def server(host: FakeHost) -> MemoryBankServer:
    options = ServerOptions(host="127.0.0.1", port=0)
    return MemoryBankServer(options, CountingStore(), FakePolicy(), host=host)


class TestLifecycle:
    """start/stop/status."""

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, server: MemoryBankServer, host: FakeHost) -> None:
        """Starting twice binds once and emits one serverStarted event."""
        with patch.object(server, "_bind_socket", wraps=server._bind_socket) as bind:
            await server.start()
            await server.start()
        try:
            assert bind.call_count == 1
            assert host.event_names() == ["serverStarted"]
            status = server.status()
            assert status.is_running is True
            assert status.port > 0
            assert status.platform == "test"
            assert host.events[0][1]["data"] == {"port": status.port}
            assert host.setup_calls == [status.port]
        finally:
            await server.stop()

    @pytest.mark.asyncio
    async def test_serves_health_while_running(self, server: MemoryBankServer) -> None:
        await server.start()
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"http://127.0.0.1:{server.status().port}/health")
            assert response.status_code == 200
            assert response.json()["status"] == "ok"
        finally:
            await server.stop()

    @pytest.mark.asyncio
    async def test_stop_tears_down_and_closes_session(self, server: MemoryBankServer, host: FakeHost) -> None:
        await server.start()
        session = await server.sessions.open()

        await server.stop()

        assert host.teardown_calls == 1
        assert session.closed
        assert server.sessions.state == SessionState.NO_SESSION
        assert server.status().is_running is False
        assert host.event_names() == ["serverStarted", "serverStopped"]

    @pytest.mark.asyncio
    async def test_stop_order(self) -> None:
        """Platform teardown runs while still listening; serverStopped is emitted last."""
        host = OrderRecordingHost()
        server = MemoryBankServer(ServerOptions(host="127.0.0.1", port=0), CountingStore(), FakePolicy(), host=host)
        host.server = server
        await server.start()
        host.port = server.status().port

        await server.stop()

        assert host.accepting_at_teardown is True
        assert host.running_at_teardown is True
        assert _accepts_connections(host.port) is False
        assert host.event_names()[-1] == "serverStopped"
        assert host.running_at_event == [True, False]

    @pytest.mark.asyncio
    async def test_failed_platform_setup_stops_listener(self) -> None:
        """A failing integration hook leaves nothing listening and allows a retry."""
        host = FailingSetupHost()
        server = MemoryBankServer(ServerOptions(host="127.0.0.1", port=0), CountingStore(), FakePolicy(), host=host)

        with pytest.raises(ServerStartError, match="extension host unreachable"):
            await server.start()

        port = host.setup_calls[0]
        assert server.is_running is False
        assert host.events == []
        assert _accepts_connections(port) is False
        async with httpx.AsyncClient() as client:
            with pytest.raises(httpx.ConnectError):
                await client.get(f"http://127.0.0.1:{port}/health")

        host.fail = False
        await server.start()
        try:
            assert server.is_running is True
            assert host.event_names() == ["serverStarted"]
        finally:
            await server.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running_is_noop(self, server: MemoryBankServer, host: FakeHost) -> None:
        await server.stop()

        assert host.teardown_calls == 0
        assert host.events == []

    @pytest.mark.asyncio
    async def test_port_in_use(self, host: FakeHost) -> None:
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        port = blocker.getsockname()[1]
        try:
            server = MemoryBankServer(ServerOptions(host="127.0.0.1", port=port), CountingStore(), FakePolicy(), host=host)

            with pytest.raises(PortInUseError) as exc_info:
                await server.start()

            assert exc_info.value.code == "PORT_IN_USE"
            assert server.status().is_running is False
            assert host.events == []
            assert host.setup_calls == []
        finally:
            blocker.close()

    @pytest.mark.asyncio
    async def test_restart_after_stop(self, server: MemoryBankServer, host: FakeHost) -> None:
        await server.start()
        await server.stop()
        await server.start()
        await server.stop()

        assert host.event_names() == ["serverStarted", "serverStopped", "serverStarted", "serverStopped"]


class TestConfiguration:
    def test_from_settings_uses_workspace_folder(self, tmp_path) -> None:
        settings = Settings(workspace=tmp_path, port=0, enable_metrics=True)

        server = MemoryBankServer.from_settings(settings, host=FakeHost())

        assert server.store.folder == tmp_path / "memory-bank"
        assert server.metrics is not None
        assert server.options.port == 0

    def test_settings_read_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MEMORY_BANK_PORT", "8123")
        monkeypatch.setenv("MEMORY_BANK_ENABLE_LOGGING", "false")
        monkeypatch.setenv("MEMORY_BANK_MAX_BODY_SIZE", "2048")

        options = Settings().to_options()

        assert options.port == 8123
        assert options.enable_logging is False
        assert options.max_body_size == 2048

    def test_parse_args(self) -> None:
        args = parse_args(["--port", "9000", "--workspace", "/tmp/project"])

        assert args.port == 9000
        assert str(args.workspace) == "/tmp/project"
        assert args.host is None
