"""
Admin metrics service.

Aggregates usage, feedback and sponsorship records for the admin dashboard:
- headline counts (unique users, weather checks, feedback, profanity share, revenue)
- last-7-day daily series (checks, unique users, revenue)
- the most recent activity items

All reductions are simple; nothing here mutates records.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Sequence

from domain.feedback import Feedback, FeedbackType
from domain.sponsorship import Sponsorship, SponsorshipStatus
from domain.time import require_utc_timestamp, utc_now
from domain.usage import UsageRecord
from repositories.feedback_repository import FeedbackRepository
from repositories.usage_repository import UsageRepository
from services.sponsorship_service import SponsorshipLifecycle

RECENT_ACTIVITY_LIMIT: int = 10
DAILY_SERIES_DAYS: int = 7


@dataclass(frozen=True, slots=True)
class DailyPoint:
    day: date
    weather_checks: int
    unique_users: int
    revenue: Decimal


@dataclass(frozen=True, slots=True)
class ActivityItem:
    kind: str  # feedback, usage
    created_at: datetime
    summary: str
    positive: bool | None = None


@dataclass(frozen=True, slots=True)
class DashboardMetrics:
    """
    Snapshot of the admin dashboard numbers.

    total_revenue sums the price of every stored sponsorship, pending included,
    since payment is taken at submission.
    """

    unique_users: int
    weather_checks: int
    positive_feedback: int
    negative_feedback: int
    profanity_percentage: int
    total_revenue: Decimal
    pending_sponsorships: int
    active_sponsorships: int
    daily: List[DailyPoint]
    recent_activity: List[ActivityItem]


def _percentage(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up; 0 when whole is 0."""

    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)


def _last_days(today: date, count: int) -> List[date]:
    return [today - timedelta(days=offset) for offset in range(count - 1, -1, -1)]


def daily_series(
    usage: Sequence[UsageRecord],
    sponsorships: Sequence[Sponsorship],
    today: date,
    days: int = DAILY_SERIES_DAYS,
) -> List[DailyPoint]:
    """Per-UTC-day checks, unique users and revenue, oldest day first."""

    points: List[DailyPoint] = []
    for day in _last_days(today, days):
        day_usage = [u for u in usage if u.created_at.date() == day]
        day_revenue = sum(
            (s.price for s in sponsorships if s.created_at.date() == day),
            Decimal("0.00"),
        )
        points.append(
            DailyPoint(
                day=day,
                weather_checks=len(day_usage),
                unique_users=len({u.user_id for u in day_usage}),
                revenue=day_revenue,
            )
        )
    return points


def recent_activity(
    feedback: Sequence[Feedback],
    usage: Sequence[UsageRecord],
    limit: int = RECENT_ACTIVITY_LIMIT,
) -> List[ActivityItem]:
    """Feedback and usage merged, newest first."""

    items: List[ActivityItem] = [
        ActivityItem(
            kind="feedback",
            created_at=f.created_at,
            summary=f.message,
            positive=f.feedback_type is FeedbackType.POSITIVE,
        )
        for f in feedback
    ]
    items.extend(
        ActivityItem(
            kind="usage",
            created_at=u.created_at,
            summary=f"Weather check - {'Profanity mode' if u.profanity_mode else 'Normal mode'}",
        )
        for u in usage
    )
    items.sort(key=lambda item: item.created_at, reverse=True)
    return items[:limit]


def calculate_dashboard_metrics(
    sponsorships: Sequence[Sponsorship],
    feedback: Sequence[Feedback],
    usage: Sequence[UsageRecord],
    now: datetime,
) -> DashboardMetrics:
    require_utc_timestamp("now", now)

    weather_checks = len(usage)
    profanity_checks = sum(1 for u in usage if u.profanity_mode)

    return DashboardMetrics(
        unique_users=len({u.user_id for u in usage}),
        weather_checks=weather_checks,
        positive_feedback=sum(1 for f in feedback if f.feedback_type is FeedbackType.POSITIVE),
        negative_feedback=sum(1 for f in feedback if f.feedback_type is FeedbackType.NEGATIVE),
        profanity_percentage=_percentage(profanity_checks, weather_checks),
        total_revenue=sum((s.price for s in sponsorships), Decimal("0.00")),
        pending_sponsorships=sum(1 for s in sponsorships if s.status is SponsorshipStatus.PENDING),
        active_sponsorships=sum(1 for s in sponsorships if s.is_live_at(now)),
        daily=daily_series(usage, sponsorships, now.date()),
        recent_activity=recent_activity(feedback, usage),
    )


class AdminMetricsService:
    def __init__(
        self,
        lifecycle: SponsorshipLifecycle,
        feedback_repository: FeedbackRepository,
        usage_repository: UsageRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.lifecycle = lifecycle
        self.feedback_repository = feedback_repository
        self.usage_repository = usage_repository
        self.clock = clock

    async def dashboard(self) -> DashboardMetrics:
        """
        Raises:
            StorageUnavailable: if any of the three collections cannot be read.
        """

        sponsorships = await self.lifecycle.list_all()
        feedback = await self.feedback_repository.list_all()
        usage = await self.usage_repository.list_all()
        return calculate_dashboard_metrics(sponsorships, feedback, usage, self.clock())


__all__ = [
    "DailyPoint",
    "ActivityItem",
    "DashboardMetrics",
    "AdminMetricsService",
    "calculate_dashboard_metrics",
    "daily_series",
    "recent_activity",
]
