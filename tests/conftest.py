"""
Pytest configuration and shared fakes.

Adds the repository root to the Python path so tests can import domain,
repositories, services and api, and provides in-memory stand-ins for Supabase,
the local store, the clock and the random source.
"""

import asyncio
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pytest

# Add the repository root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.entity_kind import EntityKind  # noqa: E402
from repositories.local_store import InMemoryLocalStore, LocalStoreError  # noqa: E402
from repositories.persistence import PersistenceAdapter  # noqa: E402
from repositories.remote_store import RemoteStoreError  # noqa: E402
from repositories.sponsorship_repository import SponsorshipRepository  # noqa: E402
from services.selector_service import SponsoredMessageSelector  # noqa: E402
from services.sponsorship_service import SponsorshipLifecycle  # noqa: E402

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeRemoteStore:
    """
    In-memory Supabase stand-in. Set `failing = True` to simulate an outage, and
    `upsert_delay` (seconds) to keep an upsert in flight while other calls run.
    """

    def __init__(self) -> None:
        self.tables: Dict[EntityKind, Dict[str, dict[str, Any]]] = {kind: {} for kind in EntityKind}
        self.failing = False
        self.upsert_delay = 0.0
        self.calls: List[str] = []

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.failing:
            raise RemoteStoreError(f"simulated outage during {operation}")

    async def list(self, kind: EntityKind) -> List[dict[str, Any]]:
        self._check("list")
        return [dict(row) for row in self.tables[kind].values()]

    async def insert(self, kind: EntityKind, row: Mapping[str, Any]) -> dict[str, Any]:
        self._check("insert")
        self.tables[kind][str(row["id"])] = dict(row)
        return dict(row)

    async def upsert(self, kind: EntityKind, row: Mapping[str, Any]) -> dict[str, Any]:
        self._check("upsert")
        if self.upsert_delay:
            await asyncio.sleep(self.upsert_delay)
        self.tables[kind][str(row["id"])] = dict(row)
        return dict(row)

    async def update(
        self, kind: EntityKind, record_id: str, fields: Mapping[str, Any]
    ) -> Optional[dict[str, Any]]:
        self._check("update")
        row = self.tables[kind].get(record_id)
        if row is None:
            return None
        row.update(fields)
        return dict(row)

    async def delete(self, kind: EntityKind, record_id: str) -> bool:
        self._check("delete")
        return self.tables[kind].pop(record_id, None) is not None


class FailingLocalStore:
    """Local store whose every read and write fails."""

    def read(self, kind: EntityKind):
        raise LocalStoreError("local store unavailable")

    def write(self, kind: EntityKind, entries) -> None:
        raise LocalStoreError("local store unavailable")


class FakeClock:
    """Fixed clock that tests move forward explicitly."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def local() -> InMemoryLocalStore:
    return InMemoryLocalStore()


@pytest.fixture
def adapter(remote: FakeRemoteStore, local: InMemoryLocalStore) -> PersistenceAdapter:
    return PersistenceAdapter(remote=remote, local=local)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def lifecycle(adapter: PersistenceAdapter, clock: FakeClock) -> SponsorshipLifecycle:
    return SponsorshipLifecycle(SponsorshipRepository(adapter), clock=clock)


@pytest.fixture
def selector(lifecycle: SponsorshipLifecycle) -> SponsoredMessageSelector:
    return SponsoredMessageSelector(lifecycle, rng=random.Random(1234))
