"""
Bring stored event statuses in line with the clock.

Meant for a system scheduler when the API's in-process sweep is disabled.

Run with: python -m scripts.sync_event_statuses [--days-back N] [--days-forward N]
"""

import argparse
import asyncio
import logging

from app.config import get_settings
from app.database import engine
from app.services.status_reconciler import MAX_SWEEP_DAYS, status_reconciler
from app.utils.logging import setup_logging

logger = logging.getLogger("app.scripts.sync_event_statuses")


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--days-back",
        type=int,
        default=settings.status_sync_days_back,
        help=f"days before today to sweep (max {MAX_SWEEP_DAYS})",
    )
    parser.add_argument(
        "--days-forward",
        type=int,
        default=settings.status_sync_days_forward,
        help=f"days after today to sweep (max {MAX_SWEEP_DAYS})",
    )
    return parser.parse_args()


async def main(days_back: int, days_forward: int) -> int:
    """Run one sweep and return the number of events updated."""
    try:
        updated = await status_reconciler.sweep_in_new_session(days_back, days_forward)
    finally:
        await engine.dispose()
    logger.info("Done: %d event(s) updated", updated)
    return updated


if __name__ == "__main__":
    setup_logging(get_settings().log_level)
    args = parse_args()
    asyncio.run(main(args.days_back, args.days_forward))
