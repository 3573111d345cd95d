"""
Domain errors shared by repositories, services and the API layer.

- InvalidSponsorship / InvalidContent: user-correctable, surfaced immediately.
- NotFound: a mutation targeted a missing id. Callers should refresh, not retry.
- StorageUnavailable: both the remote store and the local fallback failed.
"""

from __future__ import annotations


class InvalidSponsorship(ValueError):
    """Raised when a submission is missing fields or has out-of-range values."""
    pass


class InvalidContent(InvalidSponsorship):
    """Raised when a sponsored message fails the content policy."""

    def __init__(self, message: str, matched: str | None = None) -> None:
        self.matched = matched
        super().__init__(message)


class NotFound(LookupError):
    """Raised when a record id does not exist in the given entity kind."""

    def __init__(self, entity_kind: str, record_id: str) -> None:
        self.entity_kind = entity_kind
        self.record_id = record_id
        super().__init__(f"{entity_kind} record not found: {record_id}")


class StorageUnavailable(RuntimeError):
    """Raised when neither the remote store nor the local fallback could serve a call."""
    pass


__all__ = [
    "InvalidSponsorship",
    "InvalidContent",
    "NotFound",
    "StorageUnavailable",
]
