#!/usr/bin/env python3
"""CLI script to re-run transcript analysis for stored meetings.

Usage:
    uv run python scripts/refresh_analysis.py --meeting kickoff_2024-03-01
    uv run python scripts/refresh_analysis.py --all
    uv run python scripts/refresh_analysis.py --all --dry-run

Reads S3, database, and Redis settings from environment or .env file.
Each meeting is re-analyzed from its transcript, bypassing the analysis
cache, and the fresh result replaces the cached one.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

# Ensure project root is on sys.path so we can import src.meeting_intel
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

import structlog  # noqa: E402

logger = structlog.get_logger(__name__)


async def refresh(meeting_ids: list[str] | None, dry_run: bool) -> int:
    """Re-analyze the given meetings (all when None). Returns failure count."""
    from src.meeting_intel.container import build_container
    from src.meeting_intel.core.logging import configure_structlog

    configure_structlog()
    structlog.contextvars.bind_contextvars(command="refresh_analysis", dry_run=dry_run)
    container = build_container()
    failures = 0

    try:
        if meeting_ids is None:
            listing = await container.library.collect()
            if listing.diagnostics.fatal:
                print("Listing the meetings prefix failed; nothing refreshed.")
                return 1
            meeting_ids = [r.id for r in listing.records if r.transcript is not None]

        print(f"Refreshing {len(meeting_ids)} meeting(s){' (dry run)' if dry_run else ''}")
        for meeting_id in meeting_ids:
            if dry_run:
                print(f"  would refresh: {meeting_id}")
                continue

            result = await container.library.reanalyze(meeting_id)
            if result is None:
                failures += 1
                print(f"  FAILED  {meeting_id}")
                continue

            classification = result.insights.classification
            print(
                f"  ok      {meeting_id}: {classification.category.value} "
                f"({classification.confidence:.2f}) {len(result.insights.key_moments)} key moments"
            )
    finally:
        await container.aclose()

    logger.info("refresh_analysis.completed", refreshed=len(meeting_ids), failures=failures)
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description="Re-run transcript analysis for meetings")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--meeting", action="append", dest="meetings", help="Meeting id (repeatable)")
    target.add_argument("--all", action="store_true", help="Refresh every meeting with a transcript")
    parser.add_argument("--dry-run", action="store_true", help="List meetings without re-analyzing")
    args = parser.parse_args()

    failures = asyncio.run(refresh(None if args.all else args.meetings, args.dry_run))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
