"""
Domain: Weather-check usage events.

One UsageRecord is written per weather check. Records are append-only and are
read back only for admin aggregation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp
from .weather_type import WeatherType


class TempUnit(str, Enum):
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"


@dataclass(frozen=True, slots=True)
class UsageRecord:
    usage_id: str
    user_id: str
    weather_type: WeatherType
    profanity_mode: bool
    temp_unit: TempUnit
    is_raining: bool
    created_at: datetime
    temperature: Optional[float] = None
    location: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
