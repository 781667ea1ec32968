"""
Staking job scheduler.

Cron schedule (UTC) of the daily financial pipeline. The scheduler only
enqueues dramatiq messages; the work itself runs in the workers.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from app.config.settings import settings
from jobs.tasks.compounding_counters import update_compounding_counters
from jobs.tasks.daily_roi import run_daily_roi
from jobs.tasks.leadership_pools import distribute_previous_month_pools
from jobs.tasks.maintenance import reconcile_ledger, update_user_ranks

RECONCILIATION_HOUR = 1

JOB_DEFAULTS = {
    "coalesce": True,
    "max_instances": 1,
    "misfire_grace_time": 3600,
}


def create_scheduler() -> AsyncIOScheduler:
    """
    Build the scheduler with every staking job registered.

    Returns:
        Scheduler, not yet started
    """
    scheduler = AsyncIOScheduler(timezone="UTC", job_defaults=JOB_DEFAULTS)

    scheduler.add_job(
        run_daily_roi.send,
        CronTrigger(
            hour=settings.daily_roi_hour,
            minute=settings.daily_roi_minute,
            timezone="UTC",
        ),
        id="daily_roi",
        name="Daily ROI cycle",
        replace_existing=True,
    )
    scheduler.add_job(
        update_compounding_counters.send,
        CronTrigger(minute=settings.compounding_update_minute, timezone="UTC"),
        id="compounding_counters",
        name="Compounding counters",
        replace_existing=True,
    )
    scheduler.add_job(
        update_user_ranks.send,
        CronTrigger(
            hour=settings.rank_update_hour,
            minute=settings.rank_update_minute,
            timezone="UTC",
        ),
        id="user_ranks",
        name="Rank refresh",
        replace_existing=True,
    )
    scheduler.add_job(
        distribute_previous_month_pools.send,
        CronTrigger(day=1, hour=0, minute=0, timezone="UTC"),
        id="leadership_pools",
        name="Monthly leadership pool distribution",
        replace_existing=True,
    )
    scheduler.add_job(
        reconcile_ledger.send,
        CronTrigger(hour=RECONCILIATION_HOUR, minute=0, timezone="UTC"),
        id="ledger_reconciliation",
        name="Ledger reconciliation",
        replace_existing=True,
    )

    logger.info(f"Scheduler configured with {len(scheduler.get_jobs())} jobs")
    return scheduler
