"""
Unit tests for job wiring.

Tests cover:
- Scheduler job registration and triggers
- Retry policy of the broker
- Daily ROI actors delegating to the locked runner
"""

from datetime import date
from unittest.mock import MagicMock, patch

from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.exc import OperationalError

from jobs.broker import MAX_RETRIES, should_retry
from jobs.scheduler import create_scheduler
from jobs.tasks import daily_roi


class TestScheduler:
    """Test the cron schedule."""

    def test_all_jobs_registered(self):
        scheduler = create_scheduler()

        job_ids = {job.id for job in scheduler.get_jobs()}

        assert job_ids == {
            "daily_roi",
            "compounding_counters",
            "user_ranks",
            "leadership_pools",
            "ledger_reconciliation",
        }

    def test_jobs_use_cron_triggers(self):
        scheduler = create_scheduler()

        for job in scheduler.get_jobs():
            assert isinstance(job.trigger, CronTrigger)

    def test_pool_distribution_runs_on_first_of_month(self):
        job = create_scheduler().get_job("leadership_pools")

        fields = {field.name: str(field) for field in job.trigger.fields}
        assert fields["day"] == "1"
        assert fields["hour"] == "0"

    def test_scheduler_not_started(self):
        assert create_scheduler().running is False


class TestRetryPolicy:
    """Test which failures are redelivered."""

    def test_transient_error_retried(self):
        error = OperationalError("SELECT 1", {}, Exception("connection reset"))

        assert should_retry(0, error) is True

    def test_business_error_not_retried(self):
        assert should_retry(0, ValueError("bad program")) is False

    def test_retries_exhausted(self):
        assert should_retry(MAX_RETRIES, ConnectionError("down")) is False


class TestDailyRoiActors:
    """Test actors hand work to the locked runner."""

    def test_daily_roi_runs_under_lock(self):
        result = {
            "success": True,
            "day": "2026-03-10",
            "processed_stakes": 2,
            "total_stakes": 2,
            "total_roi_paid": "15",
            "error_count": 0,
        }
        with (
            patch.object(daily_roi, "run_locked", new_callable=MagicMock) as run_locked,
            patch.object(daily_roi, "run_async", return_value=result) as run_async,
        ):
            daily_roi.run_daily_roi.fn("2026-03-10")

        run_async.assert_called_once_with(run_locked.return_value)
        lock_key, operation = run_locked.call_args.args
        assert lock_key == "daily_roi_processing"
        assert run_locked.call_args.kwargs["timeout"] == 3600

        operations = MagicMock()
        operation(operations)
        operations.run_daily_roi.assert_called_once_with(date(2026, 3, 10))

    def test_daily_roi_defaults_to_today(self):
        with (
            patch.object(daily_roi, "run_locked", new_callable=MagicMock) as run_locked,
            patch.object(daily_roi, "run_async", return_value={"skipped": True}),
        ):
            daily_roi.run_daily_roi.fn()

        operation = run_locked.call_args.args[1]
        operations = MagicMock()
        operation(operations)
        operations.run_daily_roi.assert_called_once_with(None)

    def test_matching_bonuses_run_under_own_lock(self):
        result = {"paid_count": 1, "total_amount": "80", "error_count": 0}
        with (
            patch.object(daily_roi, "run_locked", new_callable=MagicMock) as run_locked,
            patch.object(daily_roi, "run_async", return_value=result),
        ):
            daily_roi.process_daily_matching_bonuses.fn("2026-03-10")

        lock_key, operation = run_locked.call_args.args
        assert lock_key == "daily_matching_bonuses"

        operations = MagicMock()
        operation(operations)
        operations.process_daily_matching_bonuses.assert_called_once_with(
            date(2026, 3, 10)
        )
