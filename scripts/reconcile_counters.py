"""
Recompute users' per-category post counters from the posts table.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from outfits.config import get_settings
from outfits.counters import reconcile_counters
from outfits.db import Database

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Reconcile user post counters")
    parser.add_argument(
        "-u",
        "--user-id",
        type=str,
        default=None,
        help="Only reconcile this user (default: all users)",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE_URL",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    database_url = args.database_url or get_settings().database_url
    if not database_url:
        logger.error("DATABASE_URL is not set")
        return 1

    db = Database(database_url, create_tables=False)
    try:
        with db.transaction() as session:
            corrected = reconcile_counters(session, user_id=args.user_id)
        logger.info("Reconciled counters, corrected %d users", corrected)
    finally:
        db.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
