"""Request logging middleware.

Logs one debug line per HTTP request through the host platform, mirroring
the request log of the editor extension.
"""

from ..host import PlatformHost


class RequestLoggingMiddleware:
    """
    Log method, path, client address and user agent for each HTTP request.

    Pure ASGI so it never buffers the SSE stream. Installed only when
    ``ServerOptions.enable_logging`` is set.
    """

    def __init__(self, app, host: PlatformHost):
        self.app = app
        self.host = host

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        client = scope.get("client")
        user_agent = headers.get(b"user-agent")
        self.host.log(
            "debug",
            f"{scope.get('method', '?')} {scope.get('path', '')}",
            {
                "ip": client[0] if client else None,
                "userAgent": user_agent.decode(errors="replace") if user_agent else None,
            },
        )

        await self.app(scope, receive, send)
