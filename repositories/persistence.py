"""
Persistence adapter.

Stores and retrieves Sponsorship, Feedback and Usage rows against Supabase,
falling back to a local store when the remote call fails. This module contains
no business rules; it is the CRUD contract everything above it consumes.

Write policy:
- Every write tries Supabase first. On any remote failure the write is applied
  to the local store and journaled as pending; the caller still gets a result,
  flagged persisted_remotely=False.
- There are no implicit retries. If the local write also fails, the call raises
  StorageUnavailable.
- Successful remote writes are mirrored locally on a best-effort basis.

Reconciliation policy (reads):
- The local store is a mirror of the last remote snapshot plus a journal of
  pending local-only writes.
- When Supabase answers, its rows refresh the mirror and pending entries are
  overlaid on top: a pending upsert replaces (or appends) the remote row, a
  pending delete hides it. Local-only writes are never lost from view.
- When Supabase fails, the mirror with pending entries applied is served.
- Local-only writes reach Supabase only through the explicit sync_pending().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol
from uuid import uuid4

from domain.errors import NotFound, StorageUnavailable
from repositories.entity_kind import REQUIRED_COLUMNS, EntityKind
from repositories.local_store import LocalEntry, LocalStoreError, PendingOp
from repositories.remote_store import RemoteStoreError

logger = logging.getLogger(__name__)


class RemoteStore(Protocol):
    async def list(self, kind: EntityKind) -> List[dict[str, Any]]: ...

    async def insert(self, kind: EntityKind, row: Mapping[str, Any]) -> dict[str, Any]: ...

    async def upsert(self, kind: EntityKind, row: Mapping[str, Any]) -> dict[str, Any]: ...

    async def update(
        self, kind: EntityKind, record_id: str, fields: Mapping[str, Any]
    ) -> Optional[dict[str, Any]]: ...

    async def delete(self, kind: EntityKind, record_id: str) -> bool: ...


class LocalStore(Protocol):
    def read(self, kind: EntityKind) -> Dict[str, LocalEntry]: ...

    def write(self, kind: EntityKind, entries: Dict[str, LocalEntry]) -> None: ...


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of a write: the stored row and where it landed."""

    record: dict[str, Any]
    persisted_remotely: bool


@dataclass(frozen=True, slots=True)
class SyncReport:
    synced: int
    remaining: int


class PersistenceAdapter:
    """
    Remote-first CRUD with a local fallback.

    Args:
        remote: Supabase-backed store (or a test double with the same methods)
        local: local fallback store, injected so tests can use an in-memory one
    """

    def __init__(self, remote: RemoteStore, local: LocalStore) -> None:
        self.remote = remote
        self.local = local

    # ------------------------------------------------------------------
    # Local store helpers
    # ------------------------------------------------------------------

    def _read_local(self, kind: EntityKind) -> Dict[str, LocalEntry]:
        """Read on the fallback path: failure here is fatal."""

        try:
            return self.local.read(kind)
        except LocalStoreError as exc:
            raise StorageUnavailable(f"Remote and local storage both failed for {kind.value}") from exc

    def _write_local(self, kind: EntityKind, entries: Dict[str, LocalEntry]) -> None:
        try:
            self.local.write(kind, entries)
        except LocalStoreError as exc:
            raise StorageUnavailable(f"Remote and local storage both failed for {kind.value}") from exc

    def _mirror(
        self,
        kind: EntityKind,
        record_id: str,
        row: Optional[Mapping[str, Any]],
        changed: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Best-effort mirror of a successful remote write; row=None removes it."""

        try:
            entries = self.local.read(kind)
            existing = entries.get(record_id)
            if row is None:
                entries.pop(record_id, None)
            elif existing is not None and existing.pending is PendingOp.UPSERT:
                # Keep unsynced local fields; only the fields just written are settled.
                existing.record.update(changed if changed is not None else row)
            else:
                entries[record_id] = LocalEntry(record=dict(row), pending=None)
            self.local.write(kind, entries)
        except LocalStoreError as exc:
            logger.warning(
                "Local mirror update failed after remote write",
                extra={"entity_kind": kind.value, "record_id": record_id, "error": str(exc)},
            )

    def _pending_delete(self, kind: EntityKind, record_id: str) -> bool:
        """A journaled delete hides the row even while Supabase still has it."""

        try:
            entry = self.local.read(kind).get(record_id)
        except LocalStoreError:
            return False
        return entry is not None and entry.pending is PendingOp.DELETE

    @staticmethod
    def _visible(entries: Iterable[LocalEntry]) -> List[dict[str, Any]]:
        return [dict(entry.record) for entry in entries if entry.pending is not PendingOp.DELETE]

    @staticmethod
    def _refresh(entries: Dict[str, LocalEntry], remote_rows: List[dict[str, Any]]) -> Dict[str, LocalEntry]:
        """Build the new mirror: remote snapshot order, then local-only pending rows."""

        refreshed: Dict[str, LocalEntry] = {}
        for row in remote_rows:
            record_id = str(row["id"])
            local = entries.get(record_id)
            if local is not None and local.pending is not None:
                refreshed[record_id] = local
            else:
                refreshed[record_id] = LocalEntry(record=dict(row), pending=None)

        for record_id, entry in entries.items():
            if record_id in refreshed:
                continue
            # Synced rows missing remotely were deleted elsewhere; a pending delete is already done.
            if entry.pending is PendingOp.UPSERT:
                refreshed[record_id] = entry
        return refreshed

    @staticmethod
    def _validate_row(kind: EntityKind, row: Mapping[str, Any]) -> None:
        missing = REQUIRED_COLUMNS[kind] - set(row.keys())
        if missing:
            raise ValueError(f"{kind.value} row is missing columns: {sorted(missing)}")

    # ------------------------------------------------------------------
    # CRUD contract
    # ------------------------------------------------------------------

    async def list(self, kind: EntityKind) -> List[dict[str, Any]]:
        """
        Return every visible row of a kind.

        Order is the remote snapshot order followed by local-only rows, and is
        stable for a given snapshot.

        Raises:
            StorageUnavailable: if Supabase and the local store both fail.
        """

        try:
            remote_rows = await self.remote.list(kind)
        except RemoteStoreError as exc:
            logger.warning(
                "Remote read failed; serving local store",
                extra={"entity_kind": kind.value, "operation": "list", "error": str(exc)},
            )
            return self._visible(self._read_local(kind).values())

        try:
            entries = self.local.read(kind)
        except LocalStoreError as exc:
            logger.warning(
                "Local store unreadable; serving remote rows only",
                extra={"entity_kind": kind.value, "error": str(exc)},
            )
            return [dict(row) for row in remote_rows]

        refreshed = self._refresh(entries, remote_rows)
        try:
            self.local.write(kind, refreshed)
        except LocalStoreError as exc:
            logger.warning(
                "Local mirror refresh failed",
                extra={"entity_kind": kind.value, "error": str(exc)},
            )
        return self._visible(refreshed.values())

    async def insert(self, kind: EntityKind, row: Mapping[str, Any]) -> WriteResult:
        """
        Insert a row, assigning an id when it has none.

        Raises:
            ValueError: if the row lacks required columns for its kind.
            StorageUnavailable: if Supabase and the local store both fail.
        """

        self._validate_row(kind, row)
        payload = dict(row)
        payload.setdefault("id", str(uuid4()))
        record_id = str(payload["id"])

        try:
            stored = await self.remote.insert(kind, payload)
        except RemoteStoreError as exc:
            logger.warning(
                "Remote insert failed; persisting locally",
                extra={"entity_kind": kind.value, "record_id": record_id, "error": str(exc)},
            )
            entries = self._read_local(kind)
            entries[record_id] = LocalEntry(record=payload, pending=PendingOp.UPSERT)
            self._write_local(kind, entries)
            return WriteResult(record=dict(payload), persisted_remotely=False)

        self._mirror(kind, record_id, stored)
        return WriteResult(record=dict(stored), persisted_remotely=True)

    async def update(self, kind: EntityKind, record_id: str, fields: Mapping[str, Any]) -> WriteResult:
        """
        Apply partial fields to one row.

        Raises:
            NotFound: if no row has this id.
            StorageUnavailable: if Supabase fails and the local store cannot
                apply the write (unreadable, or the row was never mirrored).
        """

        if self._pending_delete(kind, record_id):
            raise NotFound(kind.value, record_id)

        try:
            updated = await self.remote.update(kind, record_id, fields)
        except RemoteStoreError as exc:
            logger.warning(
                "Remote update failed; persisting locally",
                extra={"entity_kind": kind.value, "record_id": record_id, "error": str(exc)},
            )
            return self._update_local(kind, record_id, fields)

        if updated is None:
            # The row may exist only as a local, not yet synced insert.
            try:
                entries = self.local.read(kind)
            except LocalStoreError:
                raise NotFound(kind.value, record_id) from None
            entry = entries.get(record_id)
            if entry is not None and entry.pending is PendingOp.UPSERT:
                return self._update_local(kind, record_id, fields)
            raise NotFound(kind.value, record_id)

        self._mirror(kind, record_id, updated, changed=fields)
        return WriteResult(record=dict(updated), persisted_remotely=True)

    def _update_local(self, kind: EntityKind, record_id: str, fields: Mapping[str, Any]) -> WriteResult:
        entries = self._read_local(kind)
        entry = entries.get(record_id)
        if entry is None:
            # Supabase may well have the row; with it unreachable we cannot tell.
            raise StorageUnavailable(f"Supabase unreachable and {kind.value} {record_id} is not stored locally")
        if entry.pending is PendingOp.DELETE:
            raise NotFound(kind.value, record_id)
        entry.record.update(fields)
        entry.pending = PendingOp.UPSERT
        self._write_local(kind, entries)
        return WriteResult(record=dict(entry.record), persisted_remotely=False)

    async def delete(self, kind: EntityKind, record_id: str) -> WriteResult:
        """
        Delete one row.

        Raises:
            NotFound: if no row has this id.
            StorageUnavailable: if Supabase fails and the local store cannot
                apply the delete (unreadable, or the row was never mirrored).
        """

        try:
            deleted = await self.remote.delete(kind, record_id)
        except RemoteStoreError as exc:
            logger.warning(
                "Remote delete failed; journaling locally",
                extra={"entity_kind": kind.value, "record_id": record_id, "error": str(exc)},
            )
            entries = self._read_local(kind)
            entry = entries.get(record_id)
            if entry is None:
                raise StorageUnavailable(f"Supabase unreachable and {kind.value} {record_id} is not stored locally")
            if entry.pending is PendingOp.DELETE:
                raise NotFound(kind.value, record_id)
            entry.pending = PendingOp.DELETE
            self._write_local(kind, entries)
            return WriteResult(record=dict(entry.record), persisted_remotely=False)

        if not deleted:
            try:
                entries = self.local.read(kind)
            except LocalStoreError:
                raise NotFound(kind.value, record_id) from None
            entry = entries.get(record_id)
            if entry is not None and entry.pending is PendingOp.UPSERT:
                # Never reached Supabase: dropping the local entry is the whole delete.
                del entries[record_id]
                self._write_local(kind, entries)
                return WriteResult(record=dict(entry.record), persisted_remotely=False)
            raise NotFound(kind.value, record_id)

        self._mirror(kind, record_id, None)
        return WriteResult(record={"id": record_id}, persisted_remotely=True)

    async def sync_pending(self, kind: Optional[EntityKind] = None) -> SyncReport:
        """
        Push journaled local-only writes to Supabase.

        Each kind stops at its first remote failure; whatever is left stays pending.
        An entry written locally while its push was in flight also stays pending.

        Raises:
            StorageUnavailable: if the local store cannot be read or written.
        """

        kinds = [kind] if kind is not None else list(EntityKind)
        synced = 0
        remaining = 0

        for current in kinds:
            pending_ids = [rid for rid, entry in self._read_local(current).items() if entry.pending is not None]

            for record_id in pending_ids:
                # Other writers may touch the store while a push is in flight, so
                # every step works on a fresh read rather than the initial snapshot.
                entry = self._read_local(current).get(record_id)
                if entry is None or entry.pending is None:
                    continue
                sent = LocalEntry(record=dict(entry.record), pending=entry.pending)
                stored: Optional[dict[str, Any]] = None

                try:
                    if sent.pending is PendingOp.UPSERT:
                        stored = await self.remote.upsert(current, sent.record)
                    else:
                        await self.remote.delete(current, record_id)
                except RemoteStoreError as exc:
                    logger.warning(
                        "Sync stopped on remote failure",
                        extra={"entity_kind": current.value, "record_id": record_id, "error": str(exc)},
                    )
                    break

                if self._settle(current, record_id, sent, stored):
                    synced += 1

            remaining += sum(1 for entry in self._read_local(current).values() if entry.pending is not None)

        logger.info("Local sync finished", extra={"synced": synced, "remaining": remaining})
        return SyncReport(synced=synced, remaining=remaining)

    def _settle(
        self,
        kind: EntityKind,
        record_id: str,
        sent: LocalEntry,
        stored: Optional[Mapping[str, Any]],
    ) -> bool:
        """
        Clear one pushed entry, but only if nobody changed it during the push.

        Returns True when the entry was settled. A changed entry stays pending
        so the next sync pushes its newer state.
        """

        entries = self._read_local(kind)
        entry = entries.get(record_id)

        if entry is None:
            if sent.pending is PendingOp.UPSERT:
                # Deleted locally while the upsert was in flight: Supabase now
                # holds a row that must go again.
                entries[record_id] = LocalEntry(record=dict(stored or sent.record), pending=PendingOp.DELETE)
                self._write_local(kind, entries)
                return False
            return True

        if entry.pending is not sent.pending or entry.record != sent.record:
            logger.info(
                "Local entry changed during sync; left pending",
                extra={"entity_kind": kind.value, "record_id": record_id},
            )
            return False

        if sent.pending is PendingOp.UPSERT:
            entry.record = dict(stored or sent.record)
            entry.pending = None
        else:
            del entries[record_id]
        self._write_local(kind, entries)
        return True


__all__ = [
    "PersistenceAdapter",
    "WriteResult",
    "SyncReport",
    "RemoteStore",
    "LocalStore",
]
