"""
Network maintenance tasks.

Daily rank refresh and ledger reconciliation.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_async, run_locked
from jobs.broker import broker  # noqa: F401  (actors bind to the Redis broker)


@dramatiq.actor(max_retries=3, time_limit=900_000)  # 15 minutes
def update_user_ranks() -> None:
    """Recalculate ranks of all active users."""
    result = run_async(
        run_locked("user_rank_update", lambda operations: operations.update_all_user_ranks())
    )

    if result.get("skipped"):
        logger.warning("Rank update already running, skipped")
    else:
        logger.info(
            f"Ranks updated: {result['processed']} users, {result['changed']} changed"
        )


@dramatiq.actor(max_retries=1, time_limit=900_000)  # 15 minutes
def reconcile_ledger() -> None:
    """Flag stakes and users whose ledger does not add up."""
    result = run_async(
        run_locked("ledger_reconciliation", lambda operations: operations.reconcile())
    )

    if result.get("skipped"):
        logger.warning("Reconciliation already running, skipped")
    elif result["flagged"]:
        logger.warning(f"Reconciliation flagged {result['flagged']} new entries")
    else:
        logger.info(f"Reconciliation clean: {result['checked_users']} users checked")
