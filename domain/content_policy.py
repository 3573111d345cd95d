"""
Domain: Content policy for sponsored messages.

A sponsored message is rejected when it:
- contains a denylisted promotional/spam term (case-insensitive substring match),
- contains markup that could execute in the browser,
- exceeds the maximum length.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from .errors import InvalidContent

MAX_MESSAGE_LENGTH: int = 200
MAX_SPONSOR_LENGTH: int = 100

DENYLIST: tuple[str, ...] = (
    "spam",
    "scam",
    "free money",
    "click here",
    "buy now",
    "viagra",
    "casino",
    "gambling",
    "lottery",
    "winner",
)

_UNSAFE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
)


def find_denied_term(text: str, denylist: Sequence[str] = DENYLIST) -> Optional[str]:
    """Return the first denylisted term contained in text, or None."""

    lowered = text.lower()
    for term in denylist:
        if term in lowered:
            return term
    return None


def has_unsafe_markup(text: str) -> bool:
    return any(pattern.search(text) for pattern in _UNSAFE_PATTERNS)


def check_message(text: str, *, max_length: int = MAX_MESSAGE_LENGTH) -> None:
    """
    Validate a sponsored message against the content policy.

    Raises:
        InvalidContent: if the message is too long, contains unsafe markup,
            or contains a denylisted term.
    """

    if len(text) > max_length:
        raise InvalidContent(f"Message must be at most {max_length} characters")

    if has_unsafe_markup(text):
        raise InvalidContent("Message contains disallowed markup")

    term = find_denied_term(text)
    if term is not None:
        raise InvalidContent("Message contains inappropriate content", matched=term)
