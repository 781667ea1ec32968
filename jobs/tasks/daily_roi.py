"""
Daily ROI task.

Runs the daily cycle: ROI for every active stake, then compounding
counters, level overrides and binary matching. Scheduled at 00:00 UTC and
available for manual enqueueing; re-running a day is a no-op.
"""

from datetime import date

import dramatiq
from loguru import logger

from jobs.async_runner import run_async, run_locked
from jobs.broker import broker  # noqa: F401  (actors bind to the Redis broker)


@dramatiq.actor(max_retries=3, time_limit=3_600_000)  # 1 hour
def run_daily_roi(day: str | None = None) -> None:
    """
    Process daily ROI for all active stakes.

    Args:
        day: ISO date to process (defaults to today UTC)
    """
    target = date.fromisoformat(day) if day else None
    logger.info(f"Starting daily ROI cycle{f' for {day}' if day else ''}...")

    result = run_async(
        run_locked(
            "daily_roi_processing",
            lambda operations: operations.run_daily_roi(target),
            timeout=3600,
        )
    )

    if result.get("skipped"):
        logger.warning("Daily ROI cycle already running, skipped")
    elif result["success"]:
        logger.info(
            f"Daily ROI cycle complete for {result['day']}: "
            f"{result['processed_stakes']}/{result['total_stakes']} stakes paid, "
            f"total {result['total_roi_paid']}, errors {result['error_count']}"
        )
    else:
        logger.error(f"Daily ROI cycle failed: {result.get('error')}")


@dramatiq.actor(max_retries=3, time_limit=1_800_000)  # 30 minutes
def process_daily_matching_bonuses(day: str | None = None) -> None:
    """
    Pay level overrides and binary matching bonuses for a day.

    Args:
        day: ISO date to process (defaults to today UTC)
    """
    target = date.fromisoformat(day) if day else None

    result = run_async(
        run_locked(
            "daily_matching_bonuses",
            lambda operations: operations.process_daily_matching_bonuses(target),
            timeout=1800,
        )
    )

    if result.get("skipped"):
        logger.warning("Matching bonus processing already running, skipped")
    else:
        logger.info(
            f"Matching bonuses processed: {result['paid_count']} paid, "
            f"total {result['total_amount']}, errors {result['error_count']}"
        )
