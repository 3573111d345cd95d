"""
Domain: Sponsorships.

A Sponsorship is a paid, time-boxed custom message tied to one weather category.

Lifecycle:
- Submission creates the record as PENDING with no start time.
- Admin approval sets ACTIVE and stamps start_at with the approval instant,
  regardless of when the sponsorship was submitted.
- Admin rejection hard-deletes the record; no terminal row is kept.
- Expiry is derived: an ACTIVE sponsorship is eligible only while
  now ∈ [start_at, start_at + duration_days). Expired rows stay ACTIVE in storage.

This module contains only pure domain entities: no I/O, no database, no frameworks.
All timestamps must be passed explicitly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp
from .weather_type import WeatherType


class SponsorshipStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


@dataclass(frozen=True, slots=True)
class Sponsorship:
    """
    Immutable sponsorship record.

    Status changes are written through the repository; the record itself
    only answers questions about its active window.
    """

    sponsorship_id: str
    sponsor: str
    message: str
    weather_type: WeatherType
    duration_days: int
    price: Decimal
    status: SponsorshipStatus
    created_at: datetime
    start_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.start_at is not None:
            require_utc_timestamp("start_at", self.start_at)
        if self.duration_days <= 0:
            raise ValueError("duration_days must be a positive integer")
        if self.price < 0:
            raise ValueError("price must be non-negative")

    @property
    def ends_at(self) -> Optional[datetime]:
        """Exclusive end of the active window, or None until approved."""

        if self.start_at is None:
            return None
        return self.start_at + timedelta(days=self.duration_days)

    def is_live_at(self, now: datetime) -> bool:
        """
        True iff the sponsorship is ACTIVE and now falls in its half-open window.

        Weather matching is not part of this predicate.
        """

        require_utc_timestamp("now", now)
        if self.status is not SponsorshipStatus.ACTIVE or self.start_at is None:
            return False
        return self.start_at <= now < self.ends_at

    def matches(self, weather_type: WeatherType, now: datetime) -> bool:
        """Visible to the selector for (weather_type, now)."""

        return self.weather_type is weather_type and self.is_live_at(now)

    def days_left(self, now: datetime) -> int:
        """Whole days remaining in the window, rounded up; 0 when not live."""

        if not self.is_live_at(now):
            return 0
        remaining = self.ends_at - now
        return math.ceil(remaining / timedelta(days=1))
