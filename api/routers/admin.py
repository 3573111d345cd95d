"""
Admin API Endpoints.

Review surface for sponsorships (approve/reject, direct creation, message
preview), dashboard metrics, data export and pushing local-only writes to
Supabase. Every endpoint requires the shared admin secret in the
X-Admin-Password header.
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from api.deps import (
    get_clock,
    get_lifecycle,
    get_metrics_service,
    get_persistence,
    get_selector,
    require_admin,
)
from api.models import (
    ActivityItemResponse,
    DailyPointResponse,
    ErrorResponse,
    MetricsResponse,
    SponsoredMessageResponse,
    SponsorshipListResponse,
    SponsorshipResponse,
    SponsorshipSubmitRequest,
    SyncResponse,
)
from domain.errors import InvalidSponsorship, NotFound, StorageUnavailable
from domain.weather_type import WeatherType
from repositories.persistence import PersistenceAdapter
from services.export_service import ExportKind, export_collection
from services.metrics_service import AdminMetricsService
from services.selector_service import SponsoredMessageSelector
from services.sponsorship_service import SponsorshipLifecycle

router = APIRouter(dependencies=[Depends(require_admin)])

_ERRORS = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.get(
    "/admin/sponsorships/pending",
    response_model=SponsorshipListResponse,
    responses=_ERRORS,
    summary="List Pending Sponsorships"
)
async def list_pending_sponsorships(
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
):
    try:
        pending = await lifecycle.list_pending()
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    items = [SponsorshipResponse.from_domain(s) for s in pending]
    return SponsorshipListResponse(items=items, total_count=len(items))


@router.get(
    "/admin/sponsorships/active",
    response_model=SponsorshipListResponse,
    responses=_ERRORS,
    summary="List Active Sponsorships",
    description="Sponsorships with status active, including ones whose window has ended (days_left = 0)."
)
async def list_active_sponsorships(
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        active = await lifecycle.list_active()
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    now = clock()
    items = [SponsorshipResponse.from_domain(s, now=now) for s in active]
    return SponsorshipListResponse(items=items, total_count=len(items))


@router.post(
    "/admin/sponsorships",
    response_model=SponsorshipResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, **_ERRORS},
    summary="Create Active Sponsorship",
    description="Add a sponsorship directly, skipping review. It goes live immediately."
)
async def create_active_sponsorship(
    request: SponsorshipSubmitRequest,
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        sponsorship = await lifecycle.publish(
            sponsor=request.sponsor,
            message=request.message,
            weather_type=request.weather_type,
            duration_days=request.duration_days,
            price=request.price,
        )
    except InvalidSponsorship as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (NotFound, StorageUnavailable) as e:
        raise HTTPException(status_code=503, detail=f"Failed to store sponsorship: {str(e)}")

    return SponsorshipResponse.from_domain(sponsorship, now=clock())


@router.get(
    "/admin/sponsorships/preview",
    response_model=SponsoredMessageResponse,
    responses={400: {"model": ErrorResponse}, **_ERRORS},
    summary="Preview Sponsored Message",
    description="Show which sponsored message a weather check of this category would get right now."
)
async def preview_sponsored_message(
    weather_type: str = Query(..., description="Weather category, e.g. 'rain'"),
    selector: SponsoredMessageSelector = Depends(get_selector),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        category = WeatherType.parse(weather_type)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown weather_type: {weather_type!r}")

    selected = await selector.select(category, clock())
    if selected is None:
        return SponsoredMessageResponse(is_sponsored=False)

    return SponsoredMessageResponse(
        is_sponsored=True,
        message=selected.message,
        sponsor=selected.sponsor,
    )


@router.post(
    "/admin/sponsorships/{sponsorship_id}/approve",
    response_model=SponsorshipResponse,
    responses=_ERRORS,
    summary="Approve Sponsorship",
    description="Activate a sponsorship. Its window starts now."
)
async def approve_sponsorship(
    sponsorship_id: str,
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    try:
        approved = await lifecycle.approve(sponsorship_id)
    except NotFound:
        raise HTTPException(status_code=404, detail=f"Sponsorship not found: {sponsorship_id}")
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return SponsorshipResponse.from_domain(approved, now=clock())


@router.delete(
    "/admin/sponsorships/{sponsorship_id}",
    status_code=204,
    responses=_ERRORS,
    summary="Reject Sponsorship",
    description="Reject and permanently delete a sponsorship."
)
async def reject_sponsorship(
    sponsorship_id: str,
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
):
    try:
        await lifecycle.reject(sponsorship_id)
    except NotFound:
        raise HTTPException(status_code=404, detail=f"Sponsorship not found: {sponsorship_id}")
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return Response(status_code=204)


@router.get(
    "/admin/metrics",
    response_model=MetricsResponse,
    responses=_ERRORS,
    summary="Dashboard Metrics"
)
async def get_metrics(
    service: AdminMetricsService = Depends(get_metrics_service),
):
    try:
        metrics = await service.dashboard()
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return MetricsResponse(
        unique_users=metrics.unique_users,
        weather_checks=metrics.weather_checks,
        positive_feedback=metrics.positive_feedback,
        negative_feedback=metrics.negative_feedback,
        profanity_percentage=metrics.profanity_percentage,
        total_revenue=metrics.total_revenue,
        pending_sponsorships=metrics.pending_sponsorships,
        active_sponsorships=metrics.active_sponsorships,
        daily=[
            DailyPointResponse(
                day=point.day,
                weather_checks=point.weather_checks,
                unique_users=point.unique_users,
                revenue=point.revenue,
            )
            for point in metrics.daily
        ],
        recent_activity=[
            ActivityItemResponse(
                kind=item.kind,
                created_at=item.created_at,
                summary=item.summary,
                positive=item.positive,
            )
            for item in metrics.recent_activity
        ],
    )


@router.get(
    "/admin/export/{kind}",
    responses=_ERRORS,
    summary="Export Collection",
    description="Download sponsorships, feedback or usage as JSON.",
    response_class=Response
)
async def export_data(
    kind: ExportKind,
    adapter: PersistenceAdapter = Depends(get_persistence),
):
    try:
        export = await export_collection(adapter, kind)
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return Response(
        content=export.content,
        media_type="application/json",
        headers={
            "Content-Disposition": f"attachment; filename={export.filename}"
        }
    )


@router.post(
    "/admin/sync",
    response_model=SyncResponse,
    responses=_ERRORS,
    summary="Sync Local Writes",
    description="Push writes that were persisted locally only (Supabase unreachable at the time)."
)
async def sync_local_writes(
    adapter: PersistenceAdapter = Depends(get_persistence),
):
    try:
        report = await adapter.sync_pending()
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return SyncResponse(synced=report.synced, remaining=report.remaining)
