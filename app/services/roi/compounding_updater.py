"""
Compounding counter updater.

Counts consecutive UTC days without an Income withdrawal for every active
stake and switches compounding on once the program threshold and minimum
income balance are met. Runs hourly and at the end of the daily cycle;
the counter advances at most once per UTC day.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.programs import get_program
from app.config.settings import settings
from app.models.stake import Stake
from app.models.user import User
from app.repositories.stake_repository import StakeRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BatchService, log_operation
from app.utils.datetime_utils import ensure_utc, start_of_utc_day, utc_now
from app.utils.exceptions import (
    FatalBatchError,
    StakeProcessingError,
    is_per_unit,
    is_transient,
)


@dataclass
class CounterOutcome:
    """Counter transition applied to one stake."""

    stake_id: int
    incremented: bool = False
    activated: bool = False
    reset: bool = False
    failed: bool = False


def withdrew_since_last_check(stake: Stake, user: User, now: datetime) -> bool:
    """
    Check whether the owner withdrew from Income since the counter last ran.

    A withdrawal today always counts; one made after the previous check
    counts too, so a withdrawal just before midnight is not missed.
    """
    last_withdrawal = ensure_utc(user.income_last_withdrawal)
    if last_withdrawal is None:
        return False

    if last_withdrawal >= start_of_utc_day(now.date()):
        return True

    checked_at = ensure_utc(stake.compounding_checked_at)
    return checked_at is not None and last_withdrawal > checked_at


class CompoundingCounterUpdater(BatchService):
    """Maintains compounding counters, one locked transaction per stake."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        concurrency: int | None = None,
    ) -> None:
        super().__init__(session_maker)
        self.concurrency = max(1, concurrency or settings.roi_batch_concurrency)

    @log_operation
    async def run(self, now: datetime | None = None) -> dict[str, Any]:
        """
        Update compounding counters of all active stakes.

        Args:
            now: Evaluation moment (defaults to current UTC time)

        Returns:
            Counts of activated, reset, incremented and failed stakes
        """
        now = ensure_utc(now) or utc_now()

        try:
            async with self.session_maker() as session:
                stake_ids = await StakeRepository(session).find_active_stake_ids()
        except Exception as e:
            error = FatalBatchError(f"Cannot enumerate active stakes: {e}")
            self.logger.error("Cannot enumerate active stakes", extra={"error": str(e)})
            return {"success": False, "error": str(error)}

        semaphore = asyncio.Semaphore(self.concurrency)

        async def worker(stake_id: int) -> CounterOutcome:
            async with semaphore:
                return await self.update_stake(stake_id, now)

        outcomes = await asyncio.gather(*(worker(sid) for sid in stake_ids))

        summary = {
            "success": True,
            "processed": len(stake_ids),
            "activated_count": sum(1 for o in outcomes if o.activated),
            "reset_count": sum(1 for o in outcomes if o.reset),
            "incremented_count": sum(1 for o in outcomes if o.incremented),
            "error_count": sum(1 for o in outcomes if o.failed),
        }
        self.logger.info(
            "Compounding counters updated",
            extra={key: value for key, value in summary.items() if key != "success"},
        )
        return summary

    async def update_stake(self, stake_id: int, now: datetime) -> CounterOutcome:
        """
        Apply the counter transition for one stake.

        Never raises; failures are logged and reported in the outcome.
        """
        try:
            async with self.unit_of_work() as session:
                return await self._update_locked(session, stake_id, now)
        except Exception as e:
            if is_per_unit(e) or is_transient(e):
                self.logger.error(
                    f"Compounding counter update failed for stake {stake_id}",
                    extra={"stake_id": stake_id, "error": str(e)},
                )
            else:
                self.logger.exception(
                    f"Unexpected error updating compounding counter for stake {stake_id}"
                )
            return CounterOutcome(stake_id, failed=True)

    async def _update_locked(
        self, session: AsyncSession, stake_id: int, now: datetime
    ) -> CounterOutcome:
        stake = await StakeRepository(session).get_for_update(stake_id)
        if stake is None or not stake.is_active:
            return CounterOutcome(stake_id)

        user = await UserRepository(session).get_for_update(stake.user_id)
        if user is None:
            raise StakeProcessingError(
                f"Owner {stake.user_id} of stake {stake_id} not found"
            )

        config = get_program(stake.program)
        today = now.date()
        outcome = CounterOutcome(stake_id)

        if withdrew_since_last_check(stake, user, now):
            if stake.compounding_active or stake.compounding_days_without_withdrawal:
                outcome.reset = True
                self.logger.info(
                    "Compounding counter reset by withdrawal",
                    extra={
                        "stake_id": stake.id,
                        "user_id": user.id,
                        "was_active": stake.compounding_active,
                    },
                )
            stake.compounding_days_without_withdrawal = 0
            stake.compounding_active = False
            # The withdrawal day itself never counts
            stake.compounding_counted_on = ensure_utc(user.income_last_withdrawal).date()

        elif not stake.compounding_active:
            if stake.compounding_counted_on is None or stake.compounding_counted_on < today:
                stake.compounding_days_without_withdrawal += 1
                stake.compounding_counted_on = today
                outcome.incremented = True

            if (
                stake.compounding_days_without_withdrawal >= config.compounding_days
                and user.income_balance >= config.compounding_min_income
            ):
                stake.compounding_active = True
                stake.compounding_started_at = now
                stake.compounding_rate = config.compounding_rate
                outcome.activated = True
                self.logger.info(
                    "Compounding activated",
                    extra={
                        "stake_id": stake.id,
                        "user_id": user.id,
                        "days": stake.compounding_days_without_withdrawal,
                        "income_balance": str(user.income_balance),
                    },
                )

        stake.compounding_checked_at = now
        return outcome
