"""SSE transport: session lifecycle and message routing."""

from .session import MESSAGES_PATH, Session, SessionManager, SessionState

__all__ = ["MESSAGES_PATH", "Session", "SessionManager", "SessionState"]
