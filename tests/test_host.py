"""Tests for the standalone platform host."""

from __future__ import annotations

import logging

import pytest

from memory_bank_mcp.config import PlatformConfig
from memory_bank_mcp.host import StandalonePlatform, build_event


class TestStandalonePlatform:
    def test_listeners_receive_events_until_disposed(self) -> None:
        platform = StandalonePlatform()
        received: list[dict] = []
        dispose = platform.on_event("fileUpdated", received.append)

        platform.emit_event("fileUpdated", build_event("fileUpdated", {"fileType": "progress.md"}))
        dispose()
        platform.emit_event("fileUpdated", build_event("fileUpdated", {}))

        assert len(received) == 1
        assert received[0]["type"] == "fileUpdated"
        assert received[0]["data"] == {"fileType": "progress.md"}

    def test_failing_listener_does_not_stop_others(self, caplog: pytest.LogCaptureFixture) -> None:
        platform = StandalonePlatform()
        received: list[dict] = []

        def broken(payload: dict) -> None:
            raise ValueError("boom")

        platform.on_event("serverStarted", broken)
        platform.on_event("serverStarted", received.append)

        with caplog.at_level(logging.ERROR, logger="memory_bank_mcp.host"):
            platform.emit_event("serverStarted", build_event("serverStarted", {"port": 7331}))

        assert len(received) == 1
        assert "Error in event listener for serverStarted" in caplog.text

    def test_log_routes_to_stdlib_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        platform = StandalonePlatform(PlatformConfig(name="cli"))

        with caplog.at_level(logging.DEBUG, logger="memory_bank_mcp.host"):
            platform.log("warn", "Disk almost full", {"free": 10})

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "Disk almost full" in record.getMessage()

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("warning", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("trace", logging.INFO),
        ],
    )
    def test_log_accepts_any_level_name(self, caplog: pytest.LogCaptureFixture, level: str, expected: int) -> None:
        """Level names outside the four wire levels fall back to INFO instead of raising."""
        platform = StandalonePlatform()

        with caplog.at_level(logging.DEBUG, logger="memory_bank_mcp.host"):
            platform.log(level, "Indexing workspace")

        assert caplog.records[-1].levelno == expected

    @pytest.mark.asyncio
    async def test_integration_port_is_tracked(self) -> None:
        platform = StandalonePlatform()

        await platform.setup_platform_integration(7331)
        assert platform.integration_port == 7331

        await platform.teardown_platform_integration()
        assert platform.integration_port is None
