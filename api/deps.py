"""
API dependencies.

Builds the persistence adapter and services for request handlers. Tests replace
get_persistence / get_clock / get_rng through app.dependency_overrides.

Environment variables:
- ADMIN_PASSWORD: shared secret for the admin endpoints (header X-Admin-Password)
"""

from __future__ import annotations

import os
import random
import secrets
from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException

from domain.time import utc_now
from repositories.feedback_repository import FeedbackRepository
from repositories.local_store import JsonFileStore
from repositories.persistence import PersistenceAdapter
from repositories.remote_store import SupabaseRemoteStore
from repositories.sponsorship_repository import SponsorshipRepository
from repositories.usage_repository import UsageRepository
from services.activity_service import ActivityService
from services.metrics_service import AdminMetricsService
from services.selector_service import SponsoredMessageSelector
from services.sponsorship_service import SponsorshipLifecycle

_rng = random.Random()


@lru_cache(maxsize=1)
def get_persistence() -> PersistenceAdapter:
    return PersistenceAdapter(remote=SupabaseRemoteStore(), local=JsonFileStore())


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_rng() -> random.Random:
    return _rng


def get_lifecycle(
    adapter: PersistenceAdapter = Depends(get_persistence),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> SponsorshipLifecycle:
    return SponsorshipLifecycle(SponsorshipRepository(adapter), clock=clock)


def get_selector(
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
    rng: random.Random = Depends(get_rng),
) -> SponsoredMessageSelector:
    return SponsoredMessageSelector(lifecycle, rng=rng)


def get_activity_service(
    adapter: PersistenceAdapter = Depends(get_persistence),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ActivityService:
    return ActivityService(FeedbackRepository(adapter), UsageRepository(adapter), clock=clock)


def get_metrics_service(
    adapter: PersistenceAdapter = Depends(get_persistence),
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AdminMetricsService:
    return AdminMetricsService(
        lifecycle,
        FeedbackRepository(adapter),
        UsageRepository(adapter),
        clock=clock,
    )


def require_admin(x_admin_password: Optional[str] = Header(None)) -> None:
    """
    Single shared-secret check for the admin surface.

    Raises:
        HTTPException 503: ADMIN_PASSWORD is not configured
        HTTPException 401: header missing or wrong
    """

    expected = os.getenv("ADMIN_PASSWORD")
    if not expected:
        raise HTTPException(status_code=503, detail="Admin access is not configured")
    if not x_admin_password or not secrets.compare_digest(x_admin_password, expected):
        raise HTTPException(status_code=401, detail="Invalid admin password")
