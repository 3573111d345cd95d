"""
Admin data export service.

Dumps a whole collection (sponsorships, feedback, usage) as pretty-printed JSON
for download from the admin dashboard. Rows are exported as stored, including
local-only rows that have not been synced to Supabase yet.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum

from repositories.entity_kind import EntityKind
from repositories.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)


class ExportKind(str, Enum):
    SPONSORSHIPS = "sponsorships"
    FEEDBACK = "feedback"
    USAGE = "usage"

    @property
    def entity_kind(self) -> EntityKind:
        return {
            ExportKind.SPONSORSHIPS: EntityKind.SPONSORSHIPS,
            ExportKind.FEEDBACK: EntityKind.FEEDBACK,
            ExportKind.USAGE: EntityKind.USAGE,
        }[self]

    @property
    def filename(self) -> str:
        return f"weather-app-{self.value}.json"


@dataclass(frozen=True, slots=True)
class ExportFile:
    filename: str
    content: str
    record_count: int


async def export_collection(adapter: PersistenceAdapter, kind: ExportKind) -> ExportFile:
    """
    Serialize every row of a collection to JSON.

    Raises:
        StorageUnavailable: if neither Supabase nor the local store can be read.
    """

    rows = await adapter.list(kind.entity_kind)
    content = json.dumps(rows, indent=2, default=str)
    logger.info("Exported collection", extra={"export_kind": kind.value, "record_count": len(rows)})
    return ExportFile(filename=kind.filename, content=content, record_count=len(rows))


__all__ = ["ExportKind", "ExportFile", "export_collection"]
