"""API utilities and dependencies.

This package contains shared API utilities:
- deps: FastAPI dependency injection functions
"""

from .deps import (
    HostDep,
    MetricsDep,
    OriginDep,
    SessionManagerDep,
    get_client_ip,
    get_host,
    get_metrics,
    get_origin,
    get_session_manager,
    sanitize_error_message,
)

__all__ = [
    "get_client_ip",
    "get_host",
    "get_metrics",
    "get_origin",
    "get_session_manager",
    "sanitize_error_message",
    "HostDep",
    "MetricsDep",
    "OriginDep",
    "SessionManagerDep",
]
