"""
Tests for `repositories/persistence.py`.

Covers:
- remote-first writes with local fallback (persisted_remotely flag)
- reads overlay pending local writes on the remote snapshot
- reads fall back to the local mirror when Supabase fails
- NotFound for missing ids, including local-only rows
- StorageUnavailable when both stores fail, or when Supabase is down and the
  row was never mirrored locally
- explicit sync of pending writes, including writes made while a push is in flight
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from conftest import FailingLocalStore, FakeRemoteStore
from domain.errors import NotFound, StorageUnavailable
from repositories.entity_kind import EntityKind
from repositories.local_store import InMemoryLocalStore, PendingOp
from repositories.persistence import PersistenceAdapter

KIND = EntityKind.SPONSORSHIPS


def _row(record_id: str, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": record_id,
        "sponsor": "Acme",
        "message": "Stay dry!",
        "weather_type": "rain",
        "duration_days": 3,
        "price": "50",
        "status": "pending",
        "created_at_utc": "2025-06-01T12:00:00+00:00",
        "start_at_utc": None,
    }
    row.update(overrides)
    return row


def _ids(rows: list[dict[str, Any]]) -> list[str]:
    return [row["id"] for row in rows]


def test_insert_goes_remote_and_mirrors_locally(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    result = asyncio.run(adapter.insert(KIND, _row("a")))

    assert result.persisted_remotely
    assert "a" in remote.tables[KIND]
    entry = local.read(KIND)["a"]
    assert entry.pending is None
    assert entry.record["sponsor"] == "Acme"


def test_insert_assigns_an_id_when_missing(adapter: PersistenceAdapter) -> None:
    row = _row("x")
    del row["id"]

    result = asyncio.run(adapter.insert(KIND, row))

    assert result.record["id"]


def test_insert_rejects_rows_missing_required_columns(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    row = _row("a")
    del row["message"]

    with pytest.raises(ValueError):
        asyncio.run(adapter.insert(KIND, row))
    assert remote.calls == []


def test_insert_falls_back_to_local_when_remote_fails(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    remote.failing = True

    result = asyncio.run(adapter.insert(KIND, _row("a")))

    assert not result.persisted_remotely
    assert remote.tables[KIND] == {}
    assert local.read(KIND)["a"].pending is PendingOp.UPSERT


def test_write_raises_storage_unavailable_when_both_stores_fail(remote: FakeRemoteStore) -> None:
    remote.failing = True
    adapter = PersistenceAdapter(remote=remote, local=FailingLocalStore())

    with pytest.raises(StorageUnavailable):
        asyncio.run(adapter.insert(KIND, _row("a")))

    with pytest.raises(StorageUnavailable):
        asyncio.run(adapter.list(KIND))


def test_remote_write_succeeds_even_if_local_mirror_fails(remote: FakeRemoteStore) -> None:
    adapter = PersistenceAdapter(remote=remote, local=FailingLocalStore())

    result = asyncio.run(adapter.insert(KIND, _row("a")))
    rows = asyncio.run(adapter.list(KIND))

    assert result.persisted_remotely
    assert _ids(rows) == ["a"]


def test_list_serves_local_mirror_when_remote_fails(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))
    asyncio.run(adapter.insert(KIND, _row("b")))
    remote.failing = True

    rows = asyncio.run(adapter.list(KIND))

    assert _ids(rows) == ["a", "b"]


def test_list_overlays_local_only_writes_on_remote_snapshot(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("b")))
    remote.failing = False

    rows = asyncio.run(adapter.list(KIND))

    # "b" never reached Supabase but must stay visible.
    assert _ids(rows) == ["a", "b"]
    assert "b" not in remote.tables[KIND]


def test_list_is_stable_for_a_snapshot(adapter: PersistenceAdapter) -> None:
    for record_id in ("c", "a", "b"):
        asyncio.run(adapter.insert(KIND, _row(record_id)))

    first = _ids(asyncio.run(adapter.list(KIND)))
    second = _ids(asyncio.run(adapter.list(KIND)))

    assert first == second == ["c", "a", "b"]


def test_list_drops_synced_rows_deleted_elsewhere(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))
    del remote.tables[KIND]["a"]

    assert asyncio.run(adapter.list(KIND)) == []
    assert local.read(KIND) == {}


def test_update_applies_partial_fields(adapter: PersistenceAdapter, remote: FakeRemoteStore) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))

    result = asyncio.run(adapter.update(KIND, "a", {"status": "active"}))

    assert result.persisted_remotely
    assert result.record["status"] == "active"
    assert remote.tables[KIND]["a"]["sponsor"] == "Acme"


def test_update_missing_id_raises_not_found_unless_remote_is_down(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    with pytest.raises(NotFound):
        asyncio.run(adapter.update(KIND, "missing", {"status": "active"}))

    remote.failing = True
    with pytest.raises(StorageUnavailable):
        asyncio.run(adapter.update(KIND, "missing", {"status": "active"}))


def test_update_falls_back_to_local_when_remote_fails(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = True

    result = asyncio.run(adapter.update(KIND, "a", {"status": "active"}))

    assert not result.persisted_remotely
    entry = local.read(KIND)["a"]
    assert entry.pending is PendingOp.UPSERT
    assert entry.record["status"] == "active"
    assert remote.tables[KIND]["a"]["status"] == "pending"


def test_update_reaches_local_only_row_while_remote_is_up(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = False

    result = asyncio.run(adapter.update(KIND, "a", {"status": "active"}))

    assert not result.persisted_remotely
    assert result.record["status"] == "active"


def test_delete_removes_row(adapter: PersistenceAdapter, remote: FakeRemoteStore) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))

    result = asyncio.run(adapter.delete(KIND, "a"))

    assert result.persisted_remotely
    assert remote.tables[KIND] == {}
    assert asyncio.run(adapter.list(KIND)) == []
    with pytest.raises(NotFound):
        asyncio.run(adapter.delete(KIND, "a"))


def test_delete_is_journaled_when_remote_fails(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = True

    result = asyncio.run(adapter.delete(KIND, "a"))

    assert not result.persisted_remotely
    assert local.read(KIND)["a"].pending is PendingOp.DELETE
    assert asyncio.run(adapter.list(KIND)) == []

    # Still hidden once Supabase is back, even though it still has the row.
    remote.failing = False
    assert asyncio.run(adapter.list(KIND)) == []

    with pytest.raises(NotFound):
        asyncio.run(adapter.update(KIND, "a", {"status": "active"}))


def test_delete_of_local_only_row_drops_it(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = False

    asyncio.run(adapter.delete(KIND, "a"))

    assert local.read(KIND) == {}
    assert asyncio.run(adapter.list(KIND)) == []


def test_sync_pushes_pending_writes(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("b")))
    asyncio.run(adapter.delete(KIND, "a"))
    remote.failing = False

    report = asyncio.run(adapter.sync_pending())

    assert report.synced == 2
    assert report.remaining == 0
    assert list(remote.tables[KIND]) == ["b"]
    assert all(entry.pending is None for entry in local.read(KIND).values())


def test_sync_keeps_writes_pending_while_remote_is_down(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    asyncio.run(adapter.insert(KIND, _row("b")))

    report = asyncio.run(adapter.sync_pending(KIND))

    assert report.synced == 0
    assert report.remaining == 2
    assert local.read(KIND)["a"].pending is PendingOp.UPSERT


def test_local_writes_are_not_pushed_implicitly(
    adapter: PersistenceAdapter, remote: FakeRemoteStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = False

    asyncio.run(adapter.list(KIND))
    asyncio.run(adapter.insert(KIND, _row("b")))

    assert "a" not in remote.tables[KIND]


def test_outage_write_to_row_this_device_never_saw_is_storage_unavailable(remote: FakeRemoteStore) -> None:
    submitter = PersistenceAdapter(remote=remote, local=InMemoryLocalStore())
    asyncio.run(submitter.insert(KIND, _row("a")))

    reviewer = PersistenceAdapter(remote=remote, local=InMemoryLocalStore())
    remote.failing = True

    with pytest.raises(StorageUnavailable):
        asyncio.run(reviewer.update(KIND, "a", {"status": "active"}))
    with pytest.raises(StorageUnavailable):
        asyncio.run(reviewer.delete(KIND, "a"))

    remote.failing = False
    assert remote.tables[KIND]["a"]["status"] == "pending"


def test_sync_pushes_local_update_made_before_its_turn(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    asyncio.run(adapter.insert(KIND, _row("b")))
    remote.failing = False
    remote.upsert_delay = 0.05

    async def sync_while_approving():
        sync = asyncio.create_task(adapter.sync_pending(KIND))
        await asyncio.sleep(0.01)
        await adapter.update(KIND, "b", {"status": "active"})
        return await sync

    report = asyncio.run(sync_while_approving())

    assert report.synced == 2
    assert report.remaining == 0
    assert remote.tables[KIND]["b"]["status"] == "active"
    assert local.read(KIND)["b"].pending is None
    assert local.read(KIND)["b"].record["status"] == "active"


def test_sync_leaves_entry_changed_during_its_push_pending(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = False
    remote.upsert_delay = 0.05

    async def sync_while_approving():
        sync = asyncio.create_task(adapter.sync_pending(KIND))
        await asyncio.sleep(0.01)
        await adapter.update(KIND, "a", {"status": "active"})
        return await sync

    report = asyncio.run(sync_while_approving())

    assert report.synced == 0
    assert report.remaining == 1
    entry = local.read(KIND)["a"]
    assert entry.pending is PendingOp.UPSERT
    assert entry.record["status"] == "active"

    remote.upsert_delay = 0.0
    assert asyncio.run(adapter.sync_pending(KIND)).synced == 1
    assert remote.tables[KIND]["a"]["status"] == "active"
    assert local.read(KIND)["a"].pending is None


def test_sync_redeletes_row_removed_during_its_push(
    adapter: PersistenceAdapter, remote: FakeRemoteStore, local: InMemoryLocalStore
) -> None:
    remote.failing = True
    asyncio.run(adapter.insert(KIND, _row("a")))
    remote.failing = False
    remote.upsert_delay = 0.05

    async def sync_while_rejecting():
        sync = asyncio.create_task(adapter.sync_pending(KIND))
        await asyncio.sleep(0.01)
        await adapter.delete(KIND, "a")
        return await sync

    report = asyncio.run(sync_while_rejecting())

    assert report.remaining == 1
    assert local.read(KIND)["a"].pending is PendingOp.DELETE
    assert asyncio.run(adapter.list(KIND)) == []

    remote.upsert_delay = 0.0
    asyncio.run(adapter.sync_pending(KIND))
    assert "a" not in remote.tables[KIND]
    assert local.read(KIND) == {}
