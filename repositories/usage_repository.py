"""
Usage repository (persistence).

Append-only storage for weather-check events. Read back only for admin metrics.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping
from uuid import uuid4

from domain.time import parse_utc_datetime, to_iso_utc
from domain.usage import TempUnit, UsageRecord
from domain.weather_type import WeatherType
from repositories.entity_kind import EntityKind
from repositories.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


def _row_to_usage(row: Mapping[str, Any]) -> UsageRecord:
    temperature = row.get("temperature")
    return UsageRecord(
        usage_id=str(row["id"]),
        user_id=str(row["user_id"]),
        weather_type=WeatherType.parse(row["weather_type"]),
        profanity_mode=bool(row.get("profanity_mode", False)),
        temp_unit=TempUnit(str(row["temp_unit"])),
        is_raining=bool(row.get("is_raining", False)),
        created_at=parse_utc_datetime(row["created_at_utc"]),
        temperature=float(temperature) if temperature is not None else None,
        location=row.get("location"),
    )


class UsageRepository:
    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter

    async def add(self, usage: UsageRecord) -> UsageRecord:
        payload: dict[str, Any] = {
            "id": usage.usage_id or str(uuid4()),
            "user_id": usage.user_id,
            "weather_type": usage.weather_type.value,
            "profanity_mode": usage.profanity_mode,
            "temp_unit": usage.temp_unit.value,
            "is_raining": usage.is_raining,
            "temperature": usage.temperature,
            "location": usage.location,
            "created_at_utc": to_iso_utc(usage.created_at, name="created_at"),
        }
        result = await self.adapter.insert(EntityKind.USAGE, payload)
        return _row_to_usage(result.record)

    async def list_all(self) -> List[UsageRecord]:
        rows = await self.adapter.list(EntityKind.USAGE)
        records: List[UsageRecord] = []
        for row in rows:
            try:
                records.append(_row_to_usage(row))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed usage row",
                    extra={"record_id": row.get("id"), "error": str(exc)},
                )
        return records


__all__ = ["UsageRepository"]
