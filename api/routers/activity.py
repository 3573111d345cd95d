"""
Activity API Endpoints.

Append-only capture of feedback and weather-check usage.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_activity_service
from api.models import ErrorResponse, FeedbackRequest, RecordedResponse, UsageRequest
from domain.errors import InvalidContent, StorageUnavailable
from services.activity_service import ActivityService

router = APIRouter()


@router.post(
    "/feedback",
    response_model=RecordedResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Record Feedback"
)
async def record_feedback(
    request: FeedbackRequest,
    service: ActivityService = Depends(get_activity_service),
):
    try:
        feedback = await service.record_feedback(
            user_id=request.user_id,
            feedback_type=request.type,
            message=request.message,
            profanity_mode=request.profanity_mode,
        )
    except InvalidContent as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid feedback type. Must be 'positive' or 'negative', got '{request.type}'"
        )
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Failed to store feedback: {str(e)}")

    return RecordedResponse(id=feedback.feedback_id, created_at=feedback.created_at)


@router.post(
    "/usage",
    response_model=RecordedResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Record Weather Check"
)
async def record_usage(
    request: UsageRequest,
    service: ActivityService = Depends(get_activity_service),
):
    try:
        usage = await service.record_usage(
            user_id=request.user_id,
            weather_type=request.weather_type,
            temp_unit=request.temp_unit,
            is_raining=request.is_raining,
            profanity_mode=request.profanity_mode,
            temperature=request.temperature,
            location=request.location,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid usage record: {str(e)}")
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Failed to store usage: {str(e)}")

    return RecordedResponse(id=usage.usage_id, created_at=usage.created_at)
