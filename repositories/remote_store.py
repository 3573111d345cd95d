"""
Remote store (Supabase).

Thin async CRUD over the Supabase tables. Every call is bounded by a timeout,
and every failure (network, auth, schema, missing configuration, timeout) is
raised as RemoteStoreError so the persistence adapter can take its fallback path.

No business rules live here.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Mapping, Optional, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient
from supabase._async.client import SupabaseException

from repositories.client import get_supabase, remote_timeout_seconds
from repositories.entity_kind import EntityKind

T = TypeVar("T")


class RemoteStoreError(Exception):
    """Raised when a Supabase call fails for any reason."""
    pass


class SupabaseRemoteStore:
    """
    Async CRUD against Supabase tables named after EntityKind values.

    Args:
        client_factory: coroutine returning the AsyncClient (default: shared client)
        timeout_seconds: bound on each call (default: RAINCHECK_REMOTE_TIMEOUT_SECONDS)
    """

    def __init__(
        self,
        client_factory: Callable[[], Awaitable[AsyncClient]] = get_supabase,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._client_factory = client_factory
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else remote_timeout_seconds()

    async def _call(self, operation: str, kind: EntityKind, run: Callable[[AsyncClient], Awaitable[T]]) -> T:
        try:
            client = await self._client_factory()
            return await asyncio.wait_for(run(client), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise RemoteStoreError(
                f"Timed out after {self.timeout_seconds}s during {operation} on {kind.value}"
            ) from exc
        except (APIError, SupabaseException, httpx.HTTPError, RuntimeError) as exc:
            raise RemoteStoreError(f"Failed to {operation} {kind.value}: {exc}") from exc

    @staticmethod
    def _rows(response: Any) -> List[dict[str, Any]]:
        error = getattr(response, "error", None)
        if error:
            raise RemoteStoreError(str(error))
        return [dict(row) for row in (getattr(response, "data", None) or [])]

    async def list(self, kind: EntityKind) -> List[dict[str, Any]]:
        """Fetch every row of the table, oldest first."""

        async def run(client: AsyncClient) -> Any:
            return await client.table(kind.value).select("*").order("created_at_utc").execute()

        return self._rows(await self._call("list", kind, run))

    async def insert(self, kind: EntityKind, row: Mapping[str, Any]) -> dict[str, Any]:
        async def run(client: AsyncClient) -> Any:
            return await client.table(kind.value).insert(dict(row)).execute()

        rows = self._rows(await self._call("insert", kind, run))
        return rows[0] if rows else dict(row)

    async def upsert(self, kind: EntityKind, row: Mapping[str, Any]) -> dict[str, Any]:
        async def run(client: AsyncClient) -> Any:
            return await client.table(kind.value).upsert(dict(row)).execute()

        rows = self._rows(await self._call("upsert", kind, run))
        return rows[0] if rows else dict(row)

    async def update(
        self, kind: EntityKind, record_id: str, fields: Mapping[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Update one row by id. Returns None when no row matched."""

        async def run(client: AsyncClient) -> Any:
            return await client.table(kind.value).update(dict(fields)).eq("id", record_id).execute()

        rows = self._rows(await self._call("update", kind, run))
        return rows[0] if rows else None

    async def delete(self, kind: EntityKind, record_id: str) -> bool:
        """Delete one row by id. Returns False when no row matched."""

        async def run(client: AsyncClient) -> Any:
            return await client.table(kind.value).delete().eq("id", record_id).execute()

        rows = self._rows(await self._call("delete", kind, run))
        return bool(rows)


__all__ = ["RemoteStoreError", "SupabaseRemoteStore"]
