"""Security policy and content validation."""

from .policy import AccessControlPolicy, SecurityPolicy, log_security_event
from .validator import ContentValidator, Validator, sanitize_markdown

__all__ = [
    "AccessControlPolicy",
    "ContentValidator",
    "SecurityPolicy",
    "Validator",
    "log_security_event",
    "sanitize_markdown",
]
