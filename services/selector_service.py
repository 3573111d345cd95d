"""
Sponsored-message selector.

Given a weather category and the current time, picks one eligible sponsorship
uniformly at random. A sponsorship is eligible iff:
- status is ACTIVE,
- its weather_type equals the requested category,
- start_at <= now < start_at + duration_days.

Returns None when nothing is eligible; the caller falls back to its own generic
message pool. Sponsorship display is a non-critical enhancement, so storage
failures degrade to None instead of propagating.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from domain.errors import StorageUnavailable
from domain.sponsorship import Sponsorship
from domain.time import require_utc_timestamp
from domain.weather_type import WeatherType
from services.sponsorship_service import SponsorshipLifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SponsoredMessage:
    """Display payload for a sponsored message."""

    message: str
    sponsor: str
    sponsorship_id: str
    is_sponsored: bool = True


def eligible_sponsorships(
    sponsorships: List[Sponsorship], weather_type: WeatherType, now: datetime
) -> List[Sponsorship]:
    """Filter to live sponsorships for the category, preserving input order."""

    return [s for s in sponsorships if s.matches(weather_type, now)]


class SponsoredMessageSelector:
    """
    Args:
        lifecycle: read path to the sponsorship set
        rng: random source; seed it in tests to make selection deterministic
    """

    def __init__(self, lifecycle: SponsorshipLifecycle, rng: Optional[random.Random] = None) -> None:
        self.lifecycle = lifecycle
        self.rng = rng if rng is not None else random.Random()

    async def select(
        self, weather_type: Union[str, WeatherType], now: datetime
    ) -> Optional[SponsoredMessage]:
        """
        Pick a sponsored message for (weather_type, now), or None.

        An unknown weather tag simply has no sponsors.
        """

        require_utc_timestamp("now", now)
        try:
            category = WeatherType.parse(weather_type)
        except ValueError:
            return None

        try:
            active = await self.lifecycle.list_active()
        except StorageUnavailable as exc:
            logger.warning(
                "Sponsorship lookup unavailable; showing no sponsor",
                extra={"weather_type": category.value, "error": str(exc)},
            )
            return None

        candidates = eligible_sponsorships(active, category, now)
        if not candidates:
            return None

        chosen = self.rng.choice(candidates)
        return SponsoredMessage(
            message=chosen.message,
            sponsor=chosen.sponsor,
            sponsorship_id=chosen.sponsorship_id,
        )


__all__ = ["SponsoredMessage", "SponsoredMessageSelector", "eligible_sponsorships"]
