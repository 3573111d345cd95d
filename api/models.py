"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.sponsorship import Sponsorship


# ============================================================================
# Sponsorship Models
# ============================================================================

class SponsorshipSubmitRequest(BaseModel):
    """Request to submit a sponsored message for review."""
    sponsor: str = Field(..., description="Display name of the sponsor")
    message: str = Field(..., description="Message shown for the chosen weather")
    weather_type: str = Field(..., description="Weather category, e.g. 'rain'")
    duration_days: int = Field(..., description="Days the message runs once approved")
    price: Decimal = Field(..., description="Amount paid for the sponsorship")

    class Config:
        json_schema_extra = {
            "example": {
                "sponsor": "Acme",
                "message": "Stay dry!",
                "weather_type": "rain",
                "duration_days": 3,
                "price": "50.00"
            }
        }


class SponsorshipResponse(BaseModel):
    """Single sponsorship as seen by the submitter and the admin surface."""
    sponsorship_id: str
    sponsor: str
    message: str
    weather_type: str
    duration_days: int
    price: Decimal
    status: str  # pending, active
    created_at: datetime
    start_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    days_left: Optional[int] = None

    @classmethod
    def from_domain(cls, sponsorship: Sponsorship, now: Optional[datetime] = None) -> "SponsorshipResponse":
        return cls(
            sponsorship_id=sponsorship.sponsorship_id,
            sponsor=sponsorship.sponsor,
            message=sponsorship.message,
            weather_type=sponsorship.weather_type.value,
            duration_days=sponsorship.duration_days,
            price=sponsorship.price,
            status=sponsorship.status.value,
            created_at=sponsorship.created_at,
            start_at=sponsorship.start_at,
            ends_at=sponsorship.ends_at,
            days_left=sponsorship.days_left(now) if now is not None else None,
        )


class SponsorshipListResponse(BaseModel):
    items: List[SponsorshipResponse]
    total_count: int


class SponsoredMessageResponse(BaseModel):
    """Sponsored message for a weather check, or is_sponsored=False."""
    is_sponsored: bool
    message: Optional[str] = None
    sponsor: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "is_sponsored": True,
                "message": "Stay dry!",
                "sponsor": "Acme"
            }
        }


# ============================================================================
# Activity Models
# ============================================================================

class FeedbackRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    type: str = Field(..., description="'positive' or 'negative'")
    message: str = ""
    profanity_mode: bool = False


class UsageRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    weather_type: str
    profanity_mode: bool = False
    temp_unit: str = Field("celsius", description="'celsius' or 'fahrenheit'")
    is_raining: bool
    temperature: Optional[float] = None
    location: Optional[str] = None


class RecordedResponse(BaseModel):
    id: str
    created_at: datetime


# ============================================================================
# Admin Models
# ============================================================================

class DailyPointResponse(BaseModel):
    day: date
    weather_checks: int
    unique_users: int
    revenue: Decimal


class ActivityItemResponse(BaseModel):
    kind: str
    created_at: datetime
    summary: str
    positive: Optional[bool] = None


class MetricsResponse(BaseModel):
    unique_users: int
    weather_checks: int
    positive_feedback: int
    negative_feedback: int
    profanity_percentage: int
    total_revenue: Decimal
    pending_sponsorships: int
    active_sponsorships: int
    daily: List[DailyPointResponse]
    recent_activity: List[ActivityItemResponse]


class SyncResponse(BaseModel):
    synced: int
    remaining: int


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Invalid request",
                "detail": "Message contains inappropriate content",
                "status_code": 400
            }
        }
