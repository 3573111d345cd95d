"""
Supabase client initialization.

This module contains *only* the database connection setup. The async client is
created lazily on first use so that importing repository modules never needs
credentials (tests run entirely against in-memory stores).

Environment variables:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase API key (use a server-side key only on the backend)
- RAINCHECK_REMOTE_TIMEOUT_SECONDS: bound on every remote call (default: 8)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from supabase import AsyncClient, acreate_client
from supabase._async.client import SupabaseException

# Load environment variables from the .env file at the repository root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_REMOTE_TIMEOUT_SECONDS: float = 8.0

_client: Optional[AsyncClient] = None


def remote_timeout_seconds() -> float:
    """Timeout applied to each remote call before the local fallback kicks in."""

    raw = os.getenv("RAINCHECK_REMOTE_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_REMOTE_TIMEOUT_SECONDS
    return float(raw)


async def get_supabase() -> AsyncClient:
    """
    Return the shared async Supabase client, creating it on first call.

    Raises:
        RuntimeError: if SUPABASE_URL or SUPABASE_KEY is missing or rejected
            by the client (e.g. a malformed URL).
    """

    global _client
    if _client is not None:
        return _client

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase API key."
        )

    try:
        _client = await acreate_client(supabase_url, supabase_key)
    except SupabaseException as exc:
        raise RuntimeError(f"Invalid Supabase configuration: {exc}") from exc
    return _client


__all__ = ["get_supabase", "remote_timeout_seconds", "DEFAULT_REMOTE_TIMEOUT_SECONDS"]
