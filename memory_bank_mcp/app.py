"""FastAPI application for the memory bank MCP server.

Routes:
    GET  /health    liveness probe
    GET  /sse       server-to-client SSE stream (opens a session)
    POST /messages  client-to-server JSON-RPC requests
    GET  /metrics   per-method dispatch counters (when enabled)
"""

import json
import logging
from typing import Annotated

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from . import __version__
from .api import HostDep, MetricsDep, OriginDep, SessionManagerDep, get_client_ip, sanitize_error_message
from .config import ServerOptions
from .errors import MemoryBankError, NoActiveSessionError, PayloadTooLargeError, SchemaError, SecurityError
from .host import PlatformHost
from .metrics import DispatchMetrics
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from .models import AcceptedResponse, HealthResponse, utcnow
from .transport import SessionManager

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def create_app(
    options: ServerOptions,
    session_manager: SessionManager,
    host: PlatformHost,
    metrics: DispatchMetrics | None = None,
) -> FastAPI:
    """Build the HTTP application around an existing session manager."""
    app = FastAPI(
        title="Memory Bank MCP Server",
        description="MCP endpoint exposing the project memory bank over SSE",
        version=__version__,
        debug=options.debug,
    )
    app.state.session_manager = session_manager
    app.state.host = host
    app.state.metrics = metrics

    if options.enable_logging:
        app.add_middleware(RequestLoggingMiddleware, host=host)

    # Security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware restricted to the configured origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(options.allowed_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    _register_exception_handlers(app)
    _register_routes(app, options)
    return app


# ============ EXCEPTION HANDLERS ============


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions with consistent response format."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(MemoryBankError)
    async def memory_bank_exception_handler(request: Request, exc: MemoryBankError):
        if isinstance(exc, NoActiveSessionError):
            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": "No active SSE connection",
                    "message": "Please reconnect to the SSE endpoint first",
                },
            )
        if isinstance(exc, SecurityError):
            logger.warning(f"Security violation on {request.url.path}: {exc.message}")
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": "Security violation", "message": exc.message},
            )
        if isinstance(exc, PayloadTooLargeError):
            logger.warning(f"Rejected oversized body on {request.url.path} from {get_client_ip(request)}")
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": "Payload too large", "message": exc.message},
            )
        return JSONResponse(
            status_code=400,
            content={"error": "Memory bank error", "message": sanitize_error_message(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions with sanitized error messages."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ============ ROUTES ============


def _register_routes(app: FastAPI, options: ServerOptions) -> None:
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(host: HostDep) -> HealthResponse:
        """Health check endpoint (lightweight liveness check)."""
        return HealthResponse(
            status="ok",
            version=__version__,
            platform=host.config.name,
            timestamp=utcnow(),
        )

    @app.get("/sse", tags=["MCP", "SSE"])
    async def sse_endpoint(request: Request, manager: SessionManagerDep, origin: OriginDep):
        """
        Open the server-to-client event stream.

        The first event names the endpoint the client must POST requests to;
        every JSON-RPC response follows as an ``event: message`` frame.
        Opening a new stream replaces any active one.
        """
        manager.check_origin(origin)
        client_ip = get_client_ip(request)

        # The session exists only once the body is being sent
        async def event_stream():
            session = await manager.open()
            logger.info(f"SSE connection from {client_ip} (session {session.id[:8]})")
            async for frame in manager.stream(session):
                yield frame

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @app.post(
        "/messages",
        status_code=202,
        response_model=AcceptedResponse,
        tags=["MCP", "SSE"],
    )
    async def post_message(
        request: Request,
        manager: SessionManagerDep,
        session_id: Annotated[str | None, Query(alias="sessionId")] = None,
    ) -> AcceptedResponse:
        """Accept one JSON-RPC request; its response is delivered on the stream."""
        # No session means nothing is parsed or dispatched
        manager.resolve(session_id)

        raw = await _read_body(request, options.max_body_size)
        try:
            body = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise SchemaError("Invalid JSON in request body")

        session = await manager.handle_message(body, session_id)
        return AcceptedResponse(session_id=session.id)

    @app.get("/metrics", tags=["Health"])
    async def metrics_endpoint(metrics: MetricsDep):
        """Per-method request counts, error counts and mean latency."""
        if metrics is None:
            raise HTTPException(status_code=404, detail="Metrics are disabled")
        return {"methods": metrics.snapshot()}


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the request body, raising PayloadTooLargeError past ``limit`` bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(f"Request body exceeds {limit} bytes")
    return bytes(body)
