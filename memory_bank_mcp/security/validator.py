"""Content validation and markdown sanitization.

ContentValidator is stateless: ``validate`` maps raw content either to a list
of violations or to (possibly rewritten) sanitized content.
"""

import re
from typing import Protocol

from ..config import DEFAULT_MAX_FILE_SIZE
from ..models import ValidationResult

# (pattern, violation message). Every matching rule is reported.
DANGEROUS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"<script\b", re.IGNORECASE), "Content contains a <script> tag"),
    (re.compile(r"javascript:", re.IGNORECASE), "Content contains a javascript: URL"),
    (re.compile(r"vbscript:", re.IGNORECASE), "Content contains a vbscript: URL"),
    (re.compile(r"data:text/html", re.IGNORECASE), "Content contains a data:text/html URL"),
    (
        re.compile(r"<[^>]*\bon[a-z]+\s*=", re.IGNORECASE),
        "Content contains an inline event handler attribute",
    ),
)

_STYLE_EXPRESSION = re.compile(r"""style\s*=\s*["'][^"']*expression[^"']*["']""", re.IGNORECASE)


class Validator(Protocol):
    def validate(self, content: str) -> ValidationResult: ...


class ContentValidator:
    """Validates memory bank content before it is written."""

    def __init__(self, max_length: int = DEFAULT_MAX_FILE_SIZE, sanitize: bool = True):
        self.max_length = max_length
        self.sanitize = sanitize

    def validate(self, content: str) -> ValidationResult:
        errors: list[str] = []

        if len(content) > self.max_length:
            errors.append(f"Content exceeds maximum length of {self.max_length} characters")

        if "\x00" in content:
            errors.append("Content contains null bytes")

        for pattern, message in DANGEROUS_PATTERNS:
            if pattern.search(content):
                errors.append(message)

        if errors:
            return ValidationResult(is_valid=False, errors=errors)

        sanitized = sanitize_markdown(content) if self.sanitize else None
        return ValidationResult(is_valid=True, errors=[], sanitized_content=sanitized)


def sanitize_markdown(content: str) -> str:
    """Rewrite content that passed validation into its canonical stored form.

    Strips CSS expression styles and normalizes line endings to ``\\n``.
    """
    sanitized = _STYLE_EXPRESSION.sub("", content)
    return sanitized.replace("\r\n", "\n").replace("\r", "\n")
