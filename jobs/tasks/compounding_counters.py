"""
Compounding counters task.

Runs every hour via scheduler. Counts days without Income withdrawals and
activates compounding for stakes that reached their program threshold.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_async, run_locked
from jobs.broker import broker  # noqa: F401  (actors bind to the Redis broker)


@dramatiq.actor(max_retries=3, time_limit=900_000)  # 15 minutes
def update_compounding_counters() -> None:
    """Update compounding counters of all active stakes."""
    result = run_async(
        run_locked(
            "compounding_counters",
            lambda operations: operations.update_compounding_counters(),
            timeout=900,
        )
    )

    if result.get("skipped"):
        logger.warning("Compounding counter update already running, skipped")
    elif result["success"]:
        logger.info(
            f"Compounding counters updated: {result['processed']} stakes, "
            f"{result['activated_count']} activated, {result['reset_count']} reset"
        )
    else:
        logger.error(f"Compounding counter update failed: {result.get('error')}")
