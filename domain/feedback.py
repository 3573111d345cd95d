"""
Domain: User feedback on displayed messages.

Feedback is append-only and consumed only by the admin metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .time import require_utc_timestamp


class FeedbackType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


@dataclass(frozen=True, slots=True)
class Feedback:
    feedback_id: str
    user_id: str
    feedback_type: FeedbackType
    message: str
    profanity_mode: bool
    created_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
