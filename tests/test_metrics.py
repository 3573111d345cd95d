"""
Tests for `services/metrics_service.py`, `services/activity_service.py`
and `services/export_service.py`.
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import T0, FakeClock, FakeRemoteStore
from domain.errors import InvalidContent
from domain.feedback import FeedbackType
from domain.usage import TempUnit
from domain.weather_type import WeatherType
from repositories.entity_kind import EntityKind
from repositories.feedback_repository import FeedbackRepository
from repositories.persistence import PersistenceAdapter
from repositories.usage_repository import UsageRepository
from services.activity_service import MAX_FEEDBACK_LENGTH, ActivityService
from services.export_service import ExportKind, export_collection
from services.metrics_service import AdminMetricsService, _percentage
from services.sponsorship_service import SponsorshipLifecycle


@pytest.fixture
def activity(adapter: PersistenceAdapter, clock: FakeClock) -> ActivityService:
    return ActivityService(FeedbackRepository(adapter), UsageRepository(adapter), clock=clock)


@pytest.fixture
def metrics(
    adapter: PersistenceAdapter, lifecycle: SponsorshipLifecycle, clock: FakeClock
) -> AdminMetricsService:
    return AdminMetricsService(lifecycle, FeedbackRepository(adapter), UsageRepository(adapter), clock=clock)


def test_record_feedback(activity: ActivityService, clock: FakeClock) -> None:
    feedback = asyncio.run(activity.record_feedback("user-1", "positive", " Loved it ", profanity_mode=True))

    assert feedback.feedback_type is FeedbackType.POSITIVE
    assert feedback.message == "Loved it"
    assert feedback.profanity_mode
    assert feedback.created_at == clock.now


def test_record_feedback_validation(activity: ActivityService, remote: FakeRemoteStore) -> None:
    with pytest.raises(InvalidContent):
        asyncio.run(activity.record_feedback("user-1", "negative", "x" * (MAX_FEEDBACK_LENGTH + 1)))
    with pytest.raises(InvalidContent):
        asyncio.run(activity.record_feedback("user-1", "negative", "<script>alert(1)</script>"))
    with pytest.raises(ValueError):
        asyncio.run(activity.record_feedback("user-1", "meh"))

    assert remote.calls == []


def test_record_usage(activity: ActivityService) -> None:
    usage = asyncio.run(
        activity.record_usage(
            "user-1", "light_rain", "fahrenheit", True, temperature=54.5, location="Seattle, WA"
        )
    )

    assert usage.temp_unit is TempUnit.FAHRENHEIT
    assert usage.temperature == 54.5
    assert usage.location == "Seattle, WA"


def test_percentage_rounds_half_up() -> None:
    assert _percentage(0, 0) == 0
    assert _percentage(1, 2) == 50
    assert _percentage(1, 3) == 33
    assert _percentage(2, 3) == 67
    assert _percentage(1, 8) == 13


def test_dashboard_metrics(
    activity: ActivityService,
    lifecycle: SponsorshipLifecycle,
    metrics: AdminMetricsService,
    clock: FakeClock,
) -> None:
    clock.now = T0 - timedelta(days=1)
    asyncio.run(activity.record_usage("user-1", "rain", "celsius", True, profanity_mode=True))
    paid = asyncio.run(
        lifecycle.submit(sponsor="Acme", message="Stay dry!", weather_type="rain", duration_days=3, price="50.00")
    )

    clock.now = T0
    asyncio.run(activity.record_usage("user-1", "sunny", "celsius", False))
    asyncio.run(activity.record_usage("user-2", "sunny", "celsius", False))
    asyncio.run(activity.record_feedback("user-1", "positive", "Ha!"))
    asyncio.run(activity.record_feedback("user-2", "negative"))
    asyncio.run(
        lifecycle.submit(sponsor="Globex", message="Sun's out", weather_type="sunny", duration_days=1, price="25.50")
    )
    asyncio.run(lifecycle.approve(paid.sponsorship_id))

    result = asyncio.run(metrics.dashboard())

    assert result.unique_users == 2
    assert result.weather_checks == 3
    assert result.positive_feedback == 1
    assert result.negative_feedback == 1
    assert result.profanity_percentage == 33
    assert result.total_revenue == Decimal("75.50")
    assert result.pending_sponsorships == 1
    assert result.active_sponsorships == 1

    assert len(result.daily) == 7
    assert result.daily[-1].day == T0.date()
    assert result.daily[-1].weather_checks == 2
    assert result.daily[-1].unique_users == 2
    assert result.daily[-1].revenue == Decimal("25.50")
    assert result.daily[-2].revenue == Decimal("50.00")
    assert result.daily[0].weather_checks == 0

    assert len(result.recent_activity) == 5
    assert result.recent_activity[-1].kind == "usage"
    assert result.recent_activity[-1].summary == "Weather check - Profanity mode"


def test_export_collection(activity: ActivityService, adapter: PersistenceAdapter) -> None:
    asyncio.run(activity.record_feedback("user-1", "positive", "Nice"))

    export = asyncio.run(export_collection(adapter, ExportKind.FEEDBACK))

    assert export.filename == "weather-app-feedback.json"
    assert export.record_count == 1
    rows = json.loads(export.content)
    assert rows[0]["user_id"] == "user-1"
    assert rows[0]["type"] == "positive"


def test_dashboard_skips_undecodable_activity_rows(
    activity: ActivityService, metrics: AdminMetricsService, remote: FakeRemoteStore
) -> None:
    asyncio.run(activity.record_usage("user-1", "rain", "celsius", True))
    asyncio.run(activity.record_feedback("user-1", "positive"))
    remote.tables[EntityKind.USAGE]["bad-usage"] = {
        "id": "bad-usage",
        "user_id": "user-9",
        "weather_type": "hail",
        "temp_unit": "celsius",
        "created_at_utc": T0.isoformat(),
    }
    remote.tables[EntityKind.FEEDBACK]["bad-feedback"] = {
        "id": "bad-feedback",
        "user_id": "user-9",
        "created_at_utc": T0.isoformat(),
    }

    result = asyncio.run(metrics.dashboard())

    assert result.weather_checks == 1
    assert result.unique_users == 1
    assert result.positive_feedback == 1
    assert result.negative_feedback == 0


def test_usage_rows_with_condition_keywords_are_decoded(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    remote.tables[EntityKind.USAGE]["u1"] = {
        "id": "u1",
        "user_id": "user-1",
        "weather_type": "sandstorm",
        "temp_unit": "celsius",
        "created_at_utc": T0.isoformat(),
    }

    records = asyncio.run(UsageRepository(adapter).list_all())

    assert [r.weather_type for r in records] == [WeatherType.DUSTY]
