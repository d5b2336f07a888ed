"""
Daemon that deletes storage objects queued by the API.
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
from outfits.dependencies import build_cleanup_queue, build_storage_client
from outfits.worker import drain, run_loop

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Storage cleanup daemon")
    parser.add_argument(
        "--poll-seconds",
        type=float,
        default=2.0,
        help="Seconds to wait on the queue before polling again",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Drain the queue once and exit",
    )
    args = parser.parse_args()

    if args.once:
        logging.basicConfig(
            level=logging.INFO,
            format="%(name)s %(levelname)s %(asctime)s %(message)s",
            datefmt="%m/%d/%Y %I:%M:%S %p",
        )
        settings = get_settings()
        processed = drain(
            storage=build_storage_client(settings),
            queue=build_cleanup_queue(settings),
            max_attempts=settings.cleanup_max_attempts,
        )
        logger.info("Processed %d cleanup tasks", processed)
        return 0

    run_loop(poll_interval_seconds=args.poll_seconds)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
