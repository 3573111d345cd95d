"""
Local fallback store.

A device-resident persistence path used when Supabase is unreachable. The store
holds, per entity kind, an ordered mapping of record id -> LocalEntry:

- entry.record is the last known full row.
- entry.pending is None when the row is known to match Supabase, or the write
  that still has to be pushed there ("upsert" or "delete").

The store itself is dumb storage. Merge and reconciliation rules live in
repositories/persistence.py.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from repositories.entity_kind import EntityKind

DEFAULT_LOCAL_STORE_PATH = Path(__file__).parent.parent / ".raincheck_local_store.json"


class LocalStoreError(Exception):
    """Raised when the local store cannot be read or written."""
    pass


class PendingOp(str, Enum):
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass(slots=True)
class LocalEntry:
    record: dict[str, Any] = field(default_factory=dict)
    pending: Optional[PendingOp] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "record": self.record,
            "pending": self.pending.value if self.pending is not None else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "LocalEntry":
        pending = data.get("pending")
        return LocalEntry(
            record=dict(data.get("record") or {}),
            pending=PendingOp(pending) if pending else None,
        )


class InMemoryLocalStore:
    """Process-local stand-in for the durable store (tests, ephemeral runs)."""

    def __init__(self) -> None:
        self._data: Dict[EntityKind, Dict[str, LocalEntry]] = {}

    def read(self, kind: EntityKind) -> Dict[str, LocalEntry]:
        entries = self._data.get(kind, {})
        return {
            record_id: LocalEntry(record=dict(entry.record), pending=entry.pending)
            for record_id, entry in entries.items()
        }

    def write(self, kind: EntityKind, entries: Dict[str, LocalEntry]) -> None:
        self._data[kind] = {
            record_id: LocalEntry(record=dict(entry.record), pending=entry.pending)
            for record_id, entry in entries.items()
        }


class JsonFileStore:
    """
    Durable local store backed by a single JSON file.

    Writes go to a temporary file in the same directory and are moved into place
    with os.replace, so a crash never leaves a half-written store behind.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        if path is None:
            env_path = os.getenv("RAINCHECK_LOCAL_STORE_PATH")
            path = Path(env_path) if env_path else DEFAULT_LOCAL_STORE_PATH
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise LocalStoreError(f"Failed to read local store {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise LocalStoreError(f"Local store {self.path} is not a JSON object")
        return data

    def read(self, kind: EntityKind) -> Dict[str, LocalEntry]:
        section = self._load().get(kind.value, [])
        entries: Dict[str, LocalEntry] = {}
        for item in section:
            entry = LocalEntry.from_dict(item)
            record_id = entry.record.get("id")
            if record_id is None:
                raise LocalStoreError(f"Local store entry without id in {kind.value}")
            entries[str(record_id)] = entry
        return entries

    def write(self, kind: EntityKind, entries: Dict[str, LocalEntry]) -> None:
        data = self._load()
        data[kind.value] = [entry.to_dict() for entry in entries.values()]

        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, default=str)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise LocalStoreError(f"Failed to write local store {self.path}: {exc}") from exc


__all__ = [
    "LocalStoreError",
    "PendingOp",
    "LocalEntry",
    "InMemoryLocalStore",
    "JsonFileStore",
    "DEFAULT_LOCAL_STORE_PATH",
]
