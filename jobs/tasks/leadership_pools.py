"""
Leadership pool tasks.

Monthly distribution of the previous month's pools (00:00 UTC on the 1st)
and manual distribution of a single pool. Distribution is terminal, so
a repeated message never pays twice.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_async, run_locked
from jobs.broker import broker  # noqa: F401  (actors bind to the Redis broker)


@dramatiq.actor(max_retries=3, time_limit=1_800_000)  # 30 minutes
def distribute_previous_month_pools() -> None:
    """Distribute last month's pool of every configured program."""
    result = run_async(
        run_locked(
            "leadership_pool_distribution",
            lambda operations: operations.distribute_previous_month_pools(),
            timeout=1800,
        )
    )

    if result.get("skipped"):
        logger.warning("Leadership pool distribution already running, skipped")
        return

    for program, outcome in result["results"].items():
        if outcome.get("already_distributed"):
            logger.info(f"Pool {program} {result['month']} was already distributed")
        elif outcome.get("distributed"):
            logger.info(
                f"Pool {program} {result['month']} distributed: "
                f"{outcome.get('members_credited', 0)} members, "
                f"total {outcome.get('total_payout')}"
            )
        else:
            logger.warning(
                f"Pool {program} {result['month']} not distributed: "
                f"{outcome.get('error')}"
            )


@dramatiq.actor(max_retries=3, time_limit=600_000)  # 10 minutes
def distribute_leadership_pool(program: str, month: str) -> None:
    """
    Distribute one pool.

    Args:
        program: Program code (I-IV)
        month: Month as YYYY-MM or YYYY-MM-DD
    """
    result = run_async(
        run_locked(
            f"leadership_pool_{program}_{month}",
            lambda operations: operations.distribute_leadership_pool(program, month),
        )
    )

    if result.get("skipped"):
        logger.warning(f"Pool {program} {month} distribution already running, skipped")
    elif result.get("already_distributed"):
        logger.info(f"Pool {program} {month} was already distributed")
    elif result.get("distributed"):
        logger.info(
            f"Pool {program} {month} distributed to "
            f"{result.get('members_credited', 0)} members"
        )
    else:
        logger.error(f"Pool {program} {month} not distributed: {result.get('error')}")
