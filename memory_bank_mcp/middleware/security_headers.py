"""Security headers middleware.

Adds security headers to all HTTP responses using pure ASGI pattern.
"""

from uuid import uuid4

# The server only ever returns JSON and event streams
DEFAULT_HEADERS: tuple[tuple[bytes, bytes], ...] = (
    (b"x-content-type-options", b"nosniff"),
    (b"x-frame-options", b"DENY"),
    (b"x-xss-protection", b"1; mode=block"),
    (b"referrer-policy", b"no-referrer"),
    (b"content-security-policy", b"default-src 'none'; frame-ancestors 'none'"),
)

MAX_REQUEST_ID_LENGTH = 128


class SecurityHeadersMiddleware:
    """
    Add security headers to all responses.

    Uses pure ASGI middleware pattern instead of BaseHTTPMiddleware
    so the long-lived SSE stream is passed through untouched.

    A client-supplied X-Request-Id is echoed back (when short and printable);
    otherwise a fresh one is generated.
    """

    def __init__(self, app, headers: tuple[tuple[bytes, bytes], ...] = DEFAULT_HEADERS):
        self.app = app
        self.headers = headers
        self._header_names = frozenset(name for name, _ in headers)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _incoming_request_id(scope) or uuid4().hex.encode()

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                headers = [
                    (name, value)
                    for name, value in message.get("headers", [])
                    if name.lower() not in self._header_names
                ]
                headers.append((b"x-request-id", request_id))
                headers.extend(self.headers)
                message = {**message, "headers": headers}
            await send(message)

        await self.app(scope, receive, send_with_headers)


def _incoming_request_id(scope) -> bytes | None:
    for name, value in scope.get("headers", []):
        if name == b"x-request-id":
            if 0 < len(value) <= MAX_REQUEST_ID_LENGTH and value.isascii() and value.decode().isprintable():
                return value
            return None
    return None
