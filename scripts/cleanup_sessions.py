#!/usr/bin/env python3
"""Session maintenance from cron or by hand.

Usage:
    # Deactivate stale sessions, then delete old rows:
    python scripts/cleanup_sessions.py full

    # Only delete rows whose refresh window has closed:
    python scripts/cleanup_sessions.py light

Settings (DB_URI, SESSION_RETENTION_DAYS, NEVER_USED_GRACE_HOURS) come from env.yaml.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from config import ApplicationConfig
from session_service.adapter.services.session_cleanup_worker import run_cleanup


async def cleanup(mode: str) -> dict:
    from session_service.depends import AsyncSessionLocal, engine

    try:
        return await run_cleanup(
            AsyncSessionLocal,
            retention_days=ApplicationConfig.SESSION_RETENTION_DAYS,
            never_used_grace_hours=ApplicationConfig.NEVER_USED_GRACE_HOURS,
            full=mode == "full",
        )
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Clean up user sessions")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["full", "light"],
        default="full",
        help="full: deactivate stale sessions and purge old rows; light: purge expired rows only",
    )
    args = parser.parse_args()

    logging.basicConfig(level=ApplicationConfig.LOG_LEVEL.upper())

    try:
        report = asyncio.run(cleanup(args.mode))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps({"mode": args.mode, **report}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
