"""
Entity kinds handled by the persistence layer.

Each kind maps to one Supabase table and one section of the local fallback store.
"""

from __future__ import annotations

from enum import Enum


class EntityKind(str, Enum):
    SPONSORSHIPS = "sponsorships"
    FEEDBACK = "feedback"
    USAGE = "usage_data"


# Columns every row must carry before it reaches a store.
# Keep this aligned with your database schema.
REQUIRED_COLUMNS: dict[EntityKind, frozenset[str]] = {
    EntityKind.SPONSORSHIPS: frozenset(
        {
            "sponsor",
            "message",
            "weather_type",
            "duration_days",
            "price",
            "status",
            "created_at_utc",
        }
    ),
    EntityKind.FEEDBACK: frozenset(
        {"user_id", "type", "message", "profanity_mode", "created_at_utc"}
    ),
    EntityKind.USAGE: frozenset(
        {
            "user_id",
            "weather_type",
            "profanity_mode",
            "temp_unit",
            "is_raining",
            "created_at_utc",
        }
    ),
}


__all__ = ["EntityKind", "REQUIRED_COLUMNS"]
