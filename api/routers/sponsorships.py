"""
Sponsorship API Endpoints.

Public endpoints: submit a sponsorship for review, and fetch the sponsored
message (if any) for a weather check.
"""

from datetime import datetime
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_clock, get_lifecycle, get_selector
from api.models import (
    ErrorResponse,
    SponsoredMessageResponse,
    SponsorshipResponse,
    SponsorshipSubmitRequest,
)
from domain.errors import InvalidSponsorship, StorageUnavailable
from services.selector_service import SponsoredMessageSelector
from services.sponsorship_service import SponsorshipLifecycle

router = APIRouter()


@router.post(
    "/sponsorships",
    response_model=SponsorshipResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Submit Sponsorship",
    description="Submit a sponsored message. It stays pending until an admin approves it."
)
async def submit_sponsorship(
    request: SponsorshipSubmitRequest,
    lifecycle: SponsorshipLifecycle = Depends(get_lifecycle),
):
    """
    Submit a sponsored message for admin review.

    **Validation:**
    - All fields are required; duration and price must be positive
    - The message must pass the content policy (no spam/promotional terms, no markup)

    **Example request:**
    ```json
    {
      "sponsor": "Acme",
      "message": "Stay dry!",
      "weather_type": "rain",
      "duration_days": 3,
      "price": "50.00"
    }
    ```
    """
    try:
        sponsorship = await lifecycle.submit(
            sponsor=request.sponsor,
            message=request.message,
            weather_type=request.weather_type,
            duration_days=request.duration_days,
            price=request.price,
        )
    except InvalidSponsorship as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=f"Failed to store sponsorship: {str(e)}")

    return SponsorshipResponse.from_domain(sponsorship)


@router.get(
    "/sponsored-message",
    response_model=SponsoredMessageResponse,
    summary="Get Sponsored Message",
    description="Pick a live sponsored message for the given weather category, if any."
)
async def get_sponsored_message(
    weather_type: str = Query(..., description="Weather category, e.g. 'rain'"),
    selector: SponsoredMessageSelector = Depends(get_selector),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """
    Return a sponsored message for a weather check.

    When no sponsorship is live for the category (or storage is unreachable)
    the response is `{"is_sponsored": false}` and the client shows its own
    generic message.
    """
    selected = await selector.select(weather_type, clock())
    if selected is None:
        return SponsoredMessageResponse(is_sponsored=False)

    return SponsoredMessageResponse(
        is_sponsored=True,
        message=selected.message,
        sponsor=selected.sponsor,
    )
