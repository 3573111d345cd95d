"""
Activity capture service.

Records the two append-only event streams the admin dashboard reads:
feedback on displayed messages and one usage row per weather check.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Union
from uuid import uuid4

from domain.content_policy import has_unsafe_markup
from domain.errors import InvalidContent
from domain.feedback import Feedback, FeedbackType
from domain.time import utc_now
from domain.usage import TempUnit, UsageRecord
from domain.weather_type import WeatherType
from repositories.feedback_repository import FeedbackRepository
from repositories.usage_repository import UsageRepository

logger = logging.getLogger(__name__)

MAX_FEEDBACK_LENGTH: int = 1000


class ActivityService:
    def __init__(
        self,
        feedback_repository: FeedbackRepository,
        usage_repository: UsageRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.feedback_repository = feedback_repository
        self.usage_repository = usage_repository
        self.clock = clock

    async def record_feedback(
        self,
        user_id: str,
        feedback_type: Union[str, FeedbackType],
        message: str = "",
        profanity_mode: bool = False,
    ) -> Feedback:
        """
        Raises:
            InvalidContent: message too long or contains executable markup
            StorageUnavailable: remote and local storage both failed
        """

        text = (message or "").strip()
        if len(text) > MAX_FEEDBACK_LENGTH:
            raise InvalidContent(f"Feedback must be at most {MAX_FEEDBACK_LENGTH} characters")
        if has_unsafe_markup(text):
            raise InvalidContent("Feedback contains disallowed markup")

        feedback = Feedback(
            feedback_id=str(uuid4()),
            user_id=user_id,
            feedback_type=FeedbackType(feedback_type),
            message=text,
            profanity_mode=profanity_mode,
            created_at=self.clock(),
        )
        return await self.feedback_repository.add(feedback)

    async def record_usage(
        self,
        user_id: str,
        weather_type: Union[str, WeatherType],
        temp_unit: Union[str, TempUnit],
        is_raining: bool,
        profanity_mode: bool = False,
        temperature: Optional[float] = None,
        location: Optional[str] = None,
    ) -> UsageRecord:
        usage = UsageRecord(
            usage_id=str(uuid4()),
            user_id=user_id,
            weather_type=WeatherType.parse(weather_type),
            profanity_mode=profanity_mode,
            temp_unit=TempUnit(temp_unit),
            is_raining=is_raining,
            created_at=self.clock(),
            temperature=temperature,
            location=location,
        )
        stored = await self.usage_repository.add(usage)
        logger.debug("Usage recorded", extra={"usage_id": stored.usage_id, "weather_type": stored.weather_type.value})
        return stored


__all__ = ["ActivityService", "MAX_FEEDBACK_LENGTH"]
