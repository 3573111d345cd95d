"""
Sponsorship lifecycle service.

Governs the sponsorship states:
- submit: validates the submission and stores it as PENDING (start_at unset)
- approve: PENDING/ACTIVE -> ACTIVE, start_at = approval instant
- publish: admin shortcut, submit followed by approve
- reject: hard delete
- expiry: not a transition; derived from start_at + duration_days at read time

Listing filters by status only. Time-window filtering belongs to the selector.

Storage errors on this path propagate to the caller (StorageUnavailable, NotFound).
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Union

from domain.content_policy import MAX_SPONSOR_LENGTH, check_message
from domain.errors import InvalidContent, InvalidSponsorship, NotFound
from domain.sponsorship import Sponsorship, SponsorshipStatus
from domain.time import require_utc_timestamp, utc_now
from domain.weather_type import WeatherType
from repositories.entity_kind import EntityKind
from repositories.sponsorship_repository import SponsorshipRepository

logger = logging.getLogger(__name__)


def _require_text(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidSponsorship(f"{name} is required")
    return value.strip()


def _positive_int(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidSponsorship(f"{name} must be a positive integer")
    return value


def _positive_decimal(name: str, value: object) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidSponsorship(f"{name} must be a positive amount")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise InvalidSponsorship(f"{name} must be a positive amount") from None
    if not amount.is_finite() or amount <= 0:
        raise InvalidSponsorship(f"{name} must be a positive amount")
    return amount


class SponsorshipLifecycle:
    """
    Creation, approval, rejection and status listings for sponsorships.

    Args:
        repository: sponsorship persistence
        clock: returns the current UTC time (injected for tests)
    """

    def __init__(
        self,
        repository: SponsorshipRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.clock = clock

    def _now(self) -> datetime:
        now = self.clock()
        require_utc_timestamp("now", now)
        return now

    async def submit(
        self,
        sponsor: str,
        message: str,
        weather_type: Union[str, WeatherType],
        duration_days: int,
        price: Union[Decimal, int, float, str],
    ) -> Sponsorship:
        """
        Validate and store a new PENDING sponsorship.

        Raises:
            InvalidSponsorship: missing fields or out-of-range values (no write)
            InvalidContent: message fails the content policy (no write)
            StorageUnavailable: remote and local storage both failed
        """

        sponsor_name = _require_text("sponsor", sponsor)
        text = _require_text("message", message)
        if weather_type is None or (isinstance(weather_type, str) and not weather_type.strip()):
            raise InvalidSponsorship("weather_type is required")
        try:
            category = WeatherType.parse(weather_type)
        except ValueError:
            raise InvalidSponsorship(f"Unknown weather_type: {weather_type!r}") from None
        days = _positive_int("duration_days", duration_days)
        amount = _positive_decimal("price", price)

        if len(sponsor_name) > MAX_SPONSOR_LENGTH:
            raise InvalidSponsorship(f"sponsor must be at most {MAX_SPONSOR_LENGTH} characters")

        try:
            check_message(text)
        except InvalidContent as exc:
            logger.warning(
                "Sponsorship rejected by content policy",
                extra={"sponsor": sponsor_name, "matched_term": exc.matched, "reason": str(exc)},
            )
            raise

        sponsorship = Sponsorship(
            sponsorship_id=SponsorshipRepository.new_id(),
            sponsor=sponsor_name,
            message=text,
            weather_type=category,
            duration_days=days,
            price=amount,
            status=SponsorshipStatus.PENDING,
            created_at=self._now(),
            start_at=None,
        )

        stored, remote = await self.repository.add(sponsorship)
        logger.info(
            "Sponsorship submitted",
            extra={"sponsorship_id": stored.sponsorship_id, "persisted_remotely": remote},
        )
        return stored

    async def approve(self, sponsorship_id: str) -> Sponsorship:
        """
        Activate a sponsorship; its window starts now, not at submission.

        Approving an already active sponsorship moves start_at to now again.

        Raises:
            NotFound: no sponsorship with this id
            StorageUnavailable: remote and local storage both failed, or Supabase
                is down and this device never stored the sponsorship
        """

        approved, remote = await self.repository.activate(sponsorship_id, self._now())
        logger.info(
            "Sponsorship approved",
            extra={"sponsorship_id": sponsorship_id, "persisted_remotely": remote},
        )
        return approved

    async def publish(
        self,
        sponsor: str,
        message: str,
        weather_type: Union[str, WeatherType],
        duration_days: int,
        price: Union[Decimal, int, float, str],
    ) -> Sponsorship:
        """
        Admin entry: store a sponsorship that goes live immediately.

        Same validation as submit(); the record is stored pending and then
        approved, so its window starts at approval time.
        """

        submitted = await self.submit(
            sponsor=sponsor,
            message=message,
            weather_type=weather_type,
            duration_days=duration_days,
            price=price,
        )
        return await self.approve(submitted.sponsorship_id)

    async def reject(self, sponsorship_id: str) -> None:
        """
        Hard-delete a sponsorship. No rejected record is kept.

        Raises:
            NotFound: no sponsorship with this id (e.g. already rejected)
            StorageUnavailable: remote and local storage both failed, or Supabase
                is down and this device never stored the sponsorship
        """

        remote = await self.repository.remove(sponsorship_id)
        logger.info(
            "Sponsorship rejected",
            extra={"sponsorship_id": sponsorship_id, "persisted_remotely": remote},
        )

    async def get(self, sponsorship_id: str) -> Sponsorship:
        for sponsorship in await self.repository.list_all():
            if sponsorship.sponsorship_id == sponsorship_id:
                return sponsorship
        raise NotFound(EntityKind.SPONSORSHIPS.value, sponsorship_id)

    async def list_all(self) -> List[Sponsorship]:
        return await self.repository.list_all()

    async def list_pending(self) -> List[Sponsorship]:
        return [s for s in await self.repository.list_all() if s.status is SponsorshipStatus.PENDING]

    async def list_active(self) -> List[Sponsorship]:
        """ACTIVE by status only; expired sponsorships are still listed."""
        return [s for s in await self.repository.list_all() if s.status is SponsorshipStatus.ACTIVE]


__all__ = ["SponsorshipLifecycle"]
