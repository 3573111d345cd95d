#!/usr/bin/env python3
"""
Local Write Sync Script

Pushes writes that were stored only in the local fallback store (because
Supabase was unreachable when they happened) up to Supabase.

Usage:
    python sync_local_writes.py
    python sync_local_writes.py --kind sponsorships
    python sync_local_writes.py --store /var/lib/raincheck/local_store.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.errors import StorageUnavailable
from repositories.entity_kind import EntityKind
from repositories.local_store import JsonFileStore
from repositories.persistence import PersistenceAdapter, SyncReport
from repositories.remote_store import SupabaseRemoteStore


async def run_sync(
    kind: Optional[EntityKind] = None,
    store_path: Optional[Path] = None,
    adapter: Optional[PersistenceAdapter] = None,
) -> SyncReport:
    """
    Sync pending local writes for one kind, or all kinds when kind is None.

    Raises:
        StorageUnavailable: if the local store cannot be read or written
    """
    if adapter is None:
        adapter = PersistenceAdapter(remote=SupabaseRemoteStore(), local=JsonFileStore(store_path))
    return await adapter.sync_pending(kind)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Push locally stored writes to Supabase",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sync everything
  python sync_local_writes.py

  # Sync only sponsorships
  python sync_local_writes.py --kind sponsorships

  # Use a specific local store file
  python sync_local_writes.py --store ./local_store.json
        """
    )

    parser.add_argument(
        "--kind",
        "-k",
        choices=[kind.value for kind in EntityKind],
        help="Only sync this collection (default: all)"
    )

    parser.add_argument(
        "--store",
        "-s",
        type=Path,
        help="Path to the local store file (default: RAINCHECK_LOCAL_STORE_PATH)"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")

    kind = EntityKind(args.kind) if args.kind else None

    try:
        print("Syncing local writes to Supabase...")
        print(f"  Collection: {kind.value if kind else 'all'}")
        print()

        report = asyncio.run(run_sync(kind=kind, store_path=args.store))

        print("=" * 60)
        print("SYNC SUMMARY")
        print("=" * 60)
        print(f"Synced:    {report.synced}")
        print(f"Remaining: {report.remaining}")
        print("=" * 60)

        # Anything left means Supabase failed part way through.
        return 0 if report.remaining == 0 else 2

    except KeyboardInterrupt:
        print("\n\nSync interrupted by user")
        return 130

    except StorageUnavailable as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
