"""Host platform interface.

The server reports logs and lifecycle events to whatever hosts it (an
editor extension, a CLI process, a test harness) through PlatformHost.
StandalonePlatform is the default host used by the CLI.
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .config import PlatformConfig
from .models import LogLevel, utcnow

logger = logging.getLogger(__name__)

EventListener = Callable[[dict[str, Any]], None]

_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    "warning": logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@runtime_checkable
class PlatformHost(Protocol):
    """Collaborator interface the server calls into."""

    @property
    def config(self) -> PlatformConfig: ...

    def log(self, level: str, message: str, meta: dict[str, Any] | None = None) -> None: ...

    def emit_event(self, name: str, payload: dict[str, Any]) -> None: ...

    async def setup_platform_integration(self, port: int) -> None: ...

    async def teardown_platform_integration(self) -> None: ...


def build_event(name: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build the event envelope delivered to listeners."""
    return {"type": name, "timestamp": utcnow(), "data": data or {}}


class StandalonePlatform:
    """Platform host backed by stdlib logging and an in-process listener registry."""

    def __init__(self, config: PlatformConfig | None = None):
        self._config = config or PlatformConfig()
        self._listeners: dict[str, list[EventListener]] = {}
        self.integration_port: int | None = None

    @property
    def config(self) -> PlatformConfig:
        return self._config

    def log(self, level: str, message: str, meta: dict[str, Any] | None = None) -> None:
        py_level = _LEVELS.get(str(level).lower(), logging.INFO)
        if meta:
            logger.log(py_level, f"{message} {meta}")
        else:
            logger.log(py_level, message)

    def on_event(self, name: str, listener: EventListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        self._listeners.setdefault(name, []).append(listener)

        def dispose() -> None:
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)

        return dispose

    def emit_event(self, name: str, payload: dict[str, Any]) -> None:
        for listener in list(self._listeners.get(name, [])):
            try:
                listener(payload)
            except Exception as e:
                # A faulty listener must not break the operation that emitted
                logger.error(f"Error in event listener for {name}: {e}", exc_info=True)

    async def setup_platform_integration(self, port: int) -> None:
        self.integration_port = port
        logger.info(f"Platform '{self._config.name}' integration ready on port {port}")

    async def teardown_platform_integration(self) -> None:
        self.integration_port = None
        logger.info(f"Platform '{self._config.name}' integration torn down")
