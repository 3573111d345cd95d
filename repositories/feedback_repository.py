"""
Feedback repository (persistence).

Append-only storage for user feedback. Read back only for admin metrics.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping
from uuid import uuid4

from domain.feedback import Feedback, FeedbackType
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.entity_kind import EntityKind
from repositories.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


def _row_to_feedback(row: Mapping[str, Any]) -> Feedback:
    return Feedback(
        feedback_id=str(row["id"]),
        user_id=str(row["user_id"]),
        feedback_type=FeedbackType(str(row["type"])),
        message=str(row.get("message") or ""),
        profanity_mode=bool(row.get("profanity_mode", False)),
        created_at=parse_utc_datetime(row["created_at_utc"]),
    )


class FeedbackRepository:
    def __init__(self, adapter: PersistenceAdapter) -> None:
        self.adapter = adapter

    async def add(self, feedback: Feedback) -> Feedback:
        payload: dict[str, Any] = {
            "id": feedback.feedback_id or str(uuid4()),
            "user_id": feedback.user_id,
            "type": feedback.feedback_type.value,
            "message": feedback.message,
            "profanity_mode": feedback.profanity_mode,
            "created_at_utc": to_iso_utc(feedback.created_at, name="created_at"),
        }
        result = await self.adapter.insert(EntityKind.FEEDBACK, payload)
        return _row_to_feedback(result.record)

    async def list_all(self) -> List[Feedback]:
        rows = await self.adapter.list(EntityKind.FEEDBACK)
        records: List[Feedback] = []
        for row in rows:
            try:
                records.append(_row_to_feedback(row))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping malformed feedback row",
                    extra={"record_id": row.get("id"), "error": str(exc)},
                )
        return records


__all__ = ["FeedbackRepository"]
