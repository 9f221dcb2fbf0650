"""Memory bank MCP server lifecycle controller."""

import argparse
import asyncio
import errno
import logging
import socket
from pathlib import Path
from typing import Any

import uvicorn

from . import __version__
from .app import create_app
from .config import ServerOptions, Settings
from .errors import MemoryBankError, PortInUseError, ServerStartError
from .host import PlatformHost, StandalonePlatform, build_event
from .mcp.dispatcher import ProtocolDispatcher
from .metrics import DispatchMetrics
from .models import ServerEvent, ServerStatus
from .security import AccessControlPolicy, ContentValidator, SecurityPolicy, Validator
from .store import DocumentStore, MemoryBankStore
from .transport import SessionManager

logger = logging.getLogger(__name__)

STARTUP_POLL_SECONDS = 0.01
GRACEFUL_SHUTDOWN_SECONDS = 5


class MemoryBankServer:
    """
    Owns the HTTP server, the active SSE session and every collaborator.

    All server state lives on this object; nothing is kept in module globals.
    ``start()`` and ``stop()`` are idempotent and serialized by a lock.
    """

    def __init__(
        self,
        options: ServerOptions,
        store: DocumentStore,
        policy: SecurityPolicy,
        validator: Validator | None = None,
        host: PlatformHost | None = None,
    ):
        self.options = options
        self.store = store
        self.policy = policy
        self.validator = validator or ContentValidator(
            max_length=options.security.max_file_size,
            sanitize=options.security.enable_content_sanitization,
        )
        self.host = host or StandalonePlatform(options.platform)
        self.metrics = DispatchMetrics() if options.enable_metrics else None

        self.dispatcher = ProtocolDispatcher(
            store=self.store,
            policy=self.policy,
            validator=self.validator,
            host=self.host,
            metrics=self.metrics,
        )
        self.sessions = SessionManager(self.dispatcher, options.allowed_origins)
        self.app = create_app(options, self.sessions, self.host, self.metrics)

        self._running = False
        self._port = options.port
        self._uvicorn: uvicorn.Server | None = None
        self._task: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings, host: PlatformHost | None = None) -> "MemoryBankServer":
        """Build a server with the file-backed store and the default policy."""
        options = settings.to_options()
        store = MemoryBankStore.for_workspace(settings.workspace, platform_name=options.platform.name)
        policy = AccessControlPolicy(options.security, store.folder)
        return cls(options, store, policy, host=host)

    @property
    def is_running(self) -> bool:
        return self._running

    def status(self) -> ServerStatus:
        return ServerStatus(
            is_running=self._running,
            port=self._port,
            platform=self.host.config.name,
        )

    # ============ LIFECYCLE ============

    async def start(self) -> None:
        """Initialize the store, bind the port and begin serving."""
        async with self._lock:
            if self._running:
                logger.warning("Memory bank server is already running")
                return

            try:
                await self.store.initialize()
            except MemoryBankError:
                raise
            except Exception as e:
                raise ServerStartError(f"Failed to initialize memory bank: {e}") from e

            sock = self._bind_socket()
            self._port = sock.getsockname()[1]

            config = uvicorn.Config(
                self.app,
                log_config=None,
                access_log=False,
                lifespan="off",
                timeout_graceful_shutdown=GRACEFUL_SHUTDOWN_SECONDS,
            )
            server = uvicorn.Server(config)
            task = asyncio.create_task(server.serve(sockets=[sock]))

            while not server.started:
                if task.done():
                    sock.close()
                    error = task.exception() if not task.cancelled() else None
                    raise ServerStartError(f"HTTP server exited during startup: {error}")
                await asyncio.sleep(STARTUP_POLL_SECONDS)

            self._uvicorn = server
            self._task = task

            try:
                await self.host.setup_platform_integration(self._port)
            except Exception as e:
                server.should_exit = True
                await task
                sock.close()
                self._uvicorn = None
                self._task = None
                logger.error(f"Platform integration failed on port {self._port}: {e}")
                raise ServerStartError(f"Platform integration failed: {e}") from e
            self._running = True
            logger.info(f"Memory bank MCP server v{__version__} listening on {self.options.host}:{self._port}")
            self._emit(ServerEvent.SERVER_STARTED, {"port": self._port})

    async def stop(self) -> None:
        """Tear down platform integration, stop serving and drop the session."""
        async with self._lock:
            if not self._running:
                logger.warning("Memory bank server is not running")
                return

            await self.host.teardown_platform_integration()

            if self._uvicorn is not None:
                self._uvicorn.should_exit = True
            # An open SSE stream holds its connection until the session ends
            await self.sessions.close()
            if self._task is not None:
                await self._task

            self._uvicorn = None
            self._task = None
            self._running = False
            logger.info("Memory bank MCP server stopped")
            self._emit(ServerEvent.SERVER_STOPPED, {})

    async def serve_forever(self) -> None:
        """Start, wait until uvicorn exits (e.g. on SIGINT), then stop."""
        await self.start()
        try:
            if self._task is not None:
                await self._task
        finally:
            await self.stop()

    def _bind_socket(self) -> socket.socket:
        host, port = self.options.host, self.options.port
        family = socket.AF_INET6 if ":" in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            sock.close()
            if e.errno == errno.EADDRINUSE:
                raise PortInUseError(f"Port {port} is already in use", details={"port": port}) from e
            raise ServerStartError(f"Failed to bind {host}:{port}: {e}") from e
        sock.set_inheritable(True)
        return sock

    def _emit(self, event: ServerEvent, data: dict[str, Any]) -> None:
        try:
            self.host.emit_event(event.value, build_event(event.value, data))
        except Exception as e:
            logger.error(f"Failed to emit {event} event: {e}", exc_info=True)


# ============ MAIN ============


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="memory-bank-mcp",
        description="Serve a project memory bank over MCP (SSE transport).",
    )
    parser.add_argument("--host", help="Interface to bind (default from MEMORY_BANK_HOST)")
    parser.add_argument("--port", type=int, help="Port to bind (default from MEMORY_BANK_PORT)")
    parser.add_argument("--workspace", type=Path, help="Workspace holding the memory-bank folder")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Run the server until interrupted."""
    args = parse_args(argv)
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    settings = Settings(**overrides)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    server = MemoryBankServer.from_settings(settings)
    try:
        asyncio.run(server.serve_forever())
    except PortInUseError as e:
        logger.error(f"{e.message}. Choose another port with --port.")
        raise SystemExit(1) from e
    except ServerStartError as e:
        logger.error(e.message)
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
