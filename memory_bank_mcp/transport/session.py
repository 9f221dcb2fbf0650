"""SSE session management.

Bridges the long-lived server-to-client SSE stream with the POST /messages
request channel. At most one session is active at a time; opening a new
stream replaces (and closes) the previous one. Responses are pushed onto the
session's outbound queue and written to the stream by ``stream()``.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from ..errors import NoActiveSessionError, SchemaError, SecurityError
from ..mcp.dispatcher import ProtocolDispatcher
from ..models import utcnow

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/messages"
KEEPALIVE_INTERVAL_SECONDS = 15.0


class SessionState(StrEnum):
    NO_SESSION = "no_session"
    ACTIVE = "active"


class Session:
    """One SSE channel and its outbound message queue."""

    def __init__(self, session_id: str | None = None):
        self.id = session_id or uuid4().hex
        self.created_at: datetime = utcnow()
        self.closed = False
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()

    @property
    def endpoint(self) -> str:
        return f"{MESSAGES_PATH}?sessionId={self.id}"

    def send(self, message: dict[str, Any]) -> bool:
        """Queue a message for delivery. Returns False if the session is closed."""
        if self.closed:
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._queue.put_nowait(None)

    async def next_message(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Wait for the next outbound message; None once the session is closed.

        Raises TimeoutError if nothing arrives within ``timeout`` seconds.
        """
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout)

    async def events(self, keepalive_interval: float = KEEPALIVE_INTERVAL_SECONDS) -> AsyncIterator[str]:
        """Render the session as SSE frames until it is closed."""
        yield f"event: endpoint\ndata: {self.endpoint}\n\n"
        while True:
            try:
                message = await self.next_message(keepalive_interval)
            except TimeoutError:
                yield ": keepalive\n\n"
                continue
            if message is None:
                break
            yield f"event: message\ndata: {json.dumps(message, default=str)}\n\n"


class SessionManager:
    """Owns the single active session and routes inbound messages to the dispatcher."""

    def __init__(
        self,
        dispatcher: ProtocolDispatcher,
        allowed_origins: Iterable[str],
        keepalive_interval: float = KEEPALIVE_INTERVAL_SECONDS,
    ):
        self.dispatcher = dispatcher
        self.allowed_origins = frozenset(allowed_origins)
        self.keepalive_interval = keepalive_interval
        self._session: Session | None = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return SessionState.NO_SESSION if self._session is None else SessionState.ACTIVE

    @property
    def active_session(self) -> Session | None:
        return self._session

    def check_origin(self, origin: str | None) -> None:
        if origin and origin not in self.allowed_origins:
            raise SecurityError(f"Invalid origin: {origin}")

    async def open(self, origin: str | None = None) -> Session:
        """Open a new session, replacing any active one.

        The origin check runs before any state changes.
        """
        self.check_origin(origin)
        async with self._lock:
            previous = self._session
            if previous is not None:
                logger.info(f"Replacing active SSE session {previous.id[:8]}")
                previous.close()
            session = Session()
            self._session = session
        logger.debug(f"SSE session {session.id[:8]} connected")
        return session

    async def close(self, session: Session | None = None) -> None:
        """Close ``session`` (or the active session) and drop the reference."""
        async with self._lock:
            self.detach(session or self._session)

    def detach(self, session: Session | None) -> None:
        """Synchronous close used from stream teardown; contains no suspension points."""
        if session is None:
            return
        session.close()
        if self._session is session:
            self._session = None
            logger.debug(f"SSE session {session.id[:8]} disconnected")

    def resolve(self, session_id: str | None = None) -> Session:
        """Return the session a request is addressed to, or raise NoActiveSessionError."""
        session = self._session
        if session is None or session.closed:
            raise NoActiveSessionError("No active SSE connection")
        if session_id is not None and session_id != session.id:
            raise NoActiveSessionError("No active SSE connection")
        return session

    async def handle_message(self, body: Any, session_id: str | None = None) -> Session:
        """Dispatch one inbound request and push its response onto the stream.

        A response produced after its session was replaced or closed is
        discarded; the call itself always runs to completion.
        """
        session = self.resolve(session_id)
        if not isinstance(body, dict):
            raise SchemaError("Invalid request body")

        response = await self.dispatcher.dispatch(body)
        if response is not None and not session.send(response):
            logger.debug(f"Discarding response for closed session {session.id[:8]}")
        return session

    async def stream(self, session: Session) -> AsyncIterator[str]:
        """SSE body for ``session``; closes the session when the client goes away."""
        try:
            async for frame in session.events(self.keepalive_interval):
                yield frame
        finally:
            self.detach(session)
