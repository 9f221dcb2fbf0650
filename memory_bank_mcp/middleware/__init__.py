"""ASGI middleware for the FastAPI application.

This module provides ASGI middleware for:
- Security headers (X-Request-Id, nosniff, etc.)
- Request logging through the host platform
"""

from .request_logging import RequestLoggingMiddleware
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestLoggingMiddleware",
]
