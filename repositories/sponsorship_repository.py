"""
Sponsorship repository (persistence).

This module provides *only* persistence operations for the Sponsorship domain
entity: converting between domain records and stored rows, and delegating to the
persistence adapter. Status rules and time windows live in the services layer.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping
from uuid import uuid4

from domain.sponsorship import Sponsorship, SponsorshipStatus
from domain.time import parse_utc_datetime, to_iso_utc
from domain.weather_type import WeatherType
from repositories.entity_kind import EntityKind
from repositories.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


def _row_to_sponsorship(row: Mapping[str, Any]) -> Sponsorship:
    """Convert a stored row into a Sponsorship."""

    start_val = row.get("start_at_utc")
    return Sponsorship(
        sponsorship_id=str(row["id"]),
        sponsor=str(row["sponsor"]),
        message=str(row["message"]),
        weather_type=WeatherType.parse(row["weather_type"]),
        duration_days=int(row["duration_days"]),
        price=Decimal(str(row["price"])),
        status=SponsorshipStatus(str(row["status"])),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        start_at=parse_utc_datetime(start_val) if start_val is not None else None,
    )


def _sponsorship_to_row(sponsorship: Sponsorship) -> dict[str, Any]:
    return {
        "id": sponsorship.sponsorship_id,
        "sponsor": sponsorship.sponsor,
        "message": sponsorship.message,
        "weather_type": sponsorship.weather_type.value,
        "duration_days": sponsorship.duration_days,
        "price": str(sponsorship.price),
        "status": sponsorship.status.value,
        "created_at_utc": to_iso_utc(sponsorship.created_at, name="created_at"),
        "start_at_utc": (
            to_iso_utc(sponsorship.start_at, name="start_at") if sponsorship.start_at is not None else None
        ),
    }


class SponsorshipRepository:
    """Sponsorship rows stored through the persistence adapter."""

    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter

    @staticmethod
    def new_id() -> str:
        return str(uuid4())

    async def list_all(self) -> List[Sponsorship]:
        """
        Every stored sponsorship, in adapter snapshot order.

        Rows that cannot be decoded are skipped with a warning rather than
        failing the whole listing.
        """

        rows = await self.adapter.list(EntityKind.SPONSORSHIPS)
        sponsorships: List[Sponsorship] = []
        for row in rows:
            try:
                sponsorships.append(_row_to_sponsorship(row))
            except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
                logger.warning(
                    "Skipping malformed sponsorship row",
                    extra={"record_id": row.get("id"), "error": str(exc)},
                )
        return sponsorships

    async def add(self, sponsorship: Sponsorship) -> tuple[Sponsorship, bool]:
        """
        Insert a new sponsorship.

        Returns:
            (stored sponsorship, persisted_remotely)
        """

        result = await self.adapter.insert(EntityKind.SPONSORSHIPS, _sponsorship_to_row(sponsorship))
        return _row_to_sponsorship(result.record), result.persisted_remotely

    async def activate(self, sponsorship_id: str, start_at: datetime) -> tuple[Sponsorship, bool]:
        """
        Mark a sponsorship ACTIVE with its window starting at start_at.

        A single partial update, so approving twice simply moves start_at again.

        Raises:
            NotFound: if the sponsorship does not exist.
        """

        fields = {
            "status": SponsorshipStatus.ACTIVE.value,
            "start_at_utc": to_iso_utc(start_at, name="start_at"),
        }
        result = await self.adapter.update(EntityKind.SPONSORSHIPS, sponsorship_id, fields)
        return _row_to_sponsorship(result.record), result.persisted_remotely

    async def remove(self, sponsorship_id: str) -> bool:
        """
        Hard-delete a sponsorship.

        Returns:
            persisted_remotely

        Raises:
            NotFound: if the sponsorship does not exist.
        """

        result = await self.adapter.delete(EntityKind.SPONSORSHIPS, sponsorship_id)
        return result.persisted_remotely


__all__ = ["SponsorshipRepository"]
