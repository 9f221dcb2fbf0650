"""FastAPI dependency injection functions.

This module contains shared dependencies for API endpoints:
- Access to the per-app server components stored on ``app.state``
- Client address extraction
- Error sanitization
"""

import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from ..errors import MemoryBankError
from ..host import PlatformHost
from ..metrics import DispatchMetrics
from ..transport import SessionManager

logger = logging.getLogger(__name__)


# ============ ERROR SANITIZATION ============


def sanitize_error_message(error: Exception) -> str:
    """
    Sanitize error messages to prevent information disclosure.

    MemoryBankError messages are written for clients and returned as-is;
    anything else is logged and replaced with a generic message.
    """
    if isinstance(error, MemoryBankError):
        return error.message

    logger.error(f"Unexpected error: {error}", exc_info=error)
    return "An error occurred processing your request. Please try again."


# ============ COMPONENT ACCESSORS ============


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_host(request: Request) -> PlatformHost:
    return request.app.state.host


def get_metrics(request: Request) -> DispatchMetrics | None:
    return request.app.state.metrics


async def get_origin(origin: Annotated[str | None, Header(alias="Origin")] = None) -> str | None:
    """Extract the Origin header, if the client sent one."""
    return origin


def get_client_ip(request: Request) -> str | None:
    """Extract client IP from X-Forwarded-For header or direct connection."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]
HostDep = Annotated[PlatformHost, Depends(get_host)]
MetricsDep = Annotated[DispatchMetrics | None, Depends(get_metrics)]
OriginDep = Annotated[str | None, Depends(get_origin)]
