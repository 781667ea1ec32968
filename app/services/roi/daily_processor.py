"""
Daily ROI processor.

Pays each active stake at most once per UTC day. Every stake is handled in
its own database transaction: wallet credit, stake update, payment record
and ledger entry commit together or not at all.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.settings import settings
from app.models.enums import RoiPaymentType, TransactionType
from app.repositories.roi_payment_repository import RoiPaymentRepository
from app.repositories.stake_repository import StakeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BatchService, log_operation
from app.services.roi.qualification import (
    EnhancedQualification,
    QualificationEngine,
    RoiDecision,
    RoiRegime,
)
from app.utils.datetime_utils import start_of_utc_day, utc_now, utc_today
from app.utils.exceptions import (
    TRANSIENT,
    FatalBatchError,
    QualificationError,
    StakeProcessingError,
    TransientStoreError,
)
from app.utils.money import ZERO

if TYPE_CHECKING:
    from app.services.bonus.matching_bonus_engine import MatchingBonusEngine
    from app.services.roi.compounding_updater import CompoundingCounterUpdater


PAID = "paid"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class StakeOutcome:
    """Result of processing one stake."""

    stake_id: int
    status: str
    reason: str = ""
    user_id: int | None = None
    amount: Decimal = ZERO
    payment_type: str | None = None
    program: str | None = None
    rate: Decimal = ZERO

    def as_result(self) -> dict[str, Any]:
        return {
            "stake_id": self.stake_id,
            "user_id": self.user_id,
            "program": self.program,
            "payment_type": self.payment_type,
            "rate": self.rate,
            "amount": self.amount,
        }


def roi_reference(stake_id: int, day: date) -> str:
    """Ledger idempotency key of a stake's daily ROI."""
    return f"ROI-{stake_id}-{day.isoformat()}"


def cycle_moment(day: date) -> datetime:
    """Evaluation moment for follow-up steps: now, or the start of a past day."""
    now = utc_now()
    return now if now.date() == day else start_of_utc_day(day)


class DailyRoiProcessor(BatchService):
    """
    Daily ROI pass over all active stakes.

    Runs stakes in a bounded worker pool sized by roi_batch_concurrency.
    The compounding counter updater and the matching bonus engine run
    after the pass, in that order.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        compounding_updater: "CompoundingCounterUpdater | None" = None,
        matching_engine: "MatchingBonusEngine | None" = None,
        concurrency: int | None = None,
    ) -> None:
        """
        Initialize processor.

        Args:
            session_maker: Factory for per-stake sessions
            compounding_updater: Runs after the ROI pass
            matching_engine: Runs after the compounding updater
            concurrency: Worker pool size (defaults to settings)
        """
        super().__init__(session_maker)
        self.compounding_updater = compounding_updater
        self.matching_engine = matching_engine
        self.concurrency = max(1, concurrency or settings.roi_batch_concurrency)

    @log_operation
    async def run(self, today: date | None = None) -> dict[str, Any]:
        """
        Run the daily ROI cycle.

        Safe to call several times a day: stakes already paid today are
        skipped, so a re-run only pays stakes a previous run missed.

        Args:
            today: UTC business day (defaults to the current UTC date)

        Returns:
            Run summary; success is False only for fatal batch errors
        """
        today = today or utc_today()
        started = time.monotonic()

        if settings.emergency_stop_roi:
            self.logger.warning(
                "Daily ROI blocked by emergency stop",
                extra={"day": today.isoformat()},
            )
            return {
                "success": False,
                "error": "Daily ROI is blocked by emergency stop",
                "day": today.isoformat(),
            }

        try:
            stake_ids = await self._enumerate_active_stakes()
        except FatalBatchError as e:
            self.logger.error(
                "Daily ROI aborted: cannot enumerate stakes",
                extra={"day": today.isoformat(), "error": str(e)},
            )
            return {
                "success": False,
                "error": str(e),
                "day": today.isoformat(),
                "processing_time": round(time.monotonic() - started, 3),
            }

        outcomes = await self._process_all(stake_ids, today)
        summary = self._summarize(outcomes, len(stake_ids), today, started)

        self.logger.info(
            "Daily ROI pass completed",
            extra={
                "day": today.isoformat(),
                "processed_stakes": summary["processed_stakes"],
                "total_stakes": summary["total_stakes"],
                "total_roi_paid": str(summary["total_roi_paid"]),
                "error_count": summary["error_count"],
            },
        )

        summary["compounding"] = await self._run_followup(
            "compounding",
            (
                (lambda: self.compounding_updater.run(cycle_moment(today)))
                if self.compounding_updater
                else None
            ),
        )
        summary["matching"] = await self._run_followup(
            "matching",
            (
                (lambda: self.matching_engine.process_daily_matching_bonuses(today))
                if self.matching_engine
                else None
            ),
        )
        return summary

    async def _enumerate_active_stakes(self) -> list[int]:
        """
        Load the IDs of all active stakes.

        Raises:
            FatalBatchError: If the store cannot be queried
        """
        try:
            async with self.session_maker() as session:
                stake_ids = await StakeRepository(session).find_active_stake_ids()
        except Exception as e:
            raise FatalBatchError(f"Cannot enumerate active stakes: {e}") from e

        # Each stake is scheduled once per run
        return list(dict.fromkeys(stake_ids))

    async def _process_all(
        self, stake_ids: list[int], today: date
    ) -> list[StakeOutcome]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def worker(stake_id: int) -> StakeOutcome:
            async with semaphore:
                return await self.process_stake(stake_id, today)

        return list(await asyncio.gather(*(worker(sid) for sid in stake_ids)))

    async def process_stake(self, stake_id: int, today: date) -> StakeOutcome:
        """
        Process one stake in its own transaction.

        Never raises: every failure becomes a failed outcome so the batch
        continues.

        Args:
            stake_id: Stake to process
            today: UTC business day

        Returns:
            Outcome of this stake
        """
        try:
            async with self.unit_of_work() as session:
                return await self._pay_stake(session, stake_id, today)

        except IntegrityError as e:
            if await self._already_paid(stake_id, today):
                # A concurrent run recorded the payment first
                self.logger.info(
                    "Stake already paid by a concurrent run",
                    extra={"stake_id": stake_id, "day": today.isoformat()},
                )
                return StakeOutcome(stake_id, SKIPPED, reason="already_paid")
            self.logger.error(
                f"Integrity error on stake {stake_id}",
                extra={"stake_id": stake_id, "error": str(e)},
            )
            return StakeOutcome(stake_id, FAILED, reason=str(e))

        except (QualificationError, StakeProcessingError) as e:
            self.logger.error(
                f"Stake {stake_id} rejected",
                extra={"stake_id": stake_id, "error": str(e)},
            )
            return StakeOutcome(stake_id, FAILED, reason=str(e))

        except TRANSIENT as e:
            error = TransientStoreError(f"Store failure on stake {stake_id}: {e}")
            self.logger.warning(
                f"Store failure on stake {stake_id}",
                extra={"stake_id": stake_id, "error": str(e)},
            )
            return StakeOutcome(stake_id, FAILED, reason=str(error))

        except Exception as e:
            self.logger.exception(
                f"Unexpected error processing stake {stake_id}",
                extra={"stake_id": stake_id, "error": str(e)},
            )
            return StakeOutcome(stake_id, FAILED, reason=str(e))

    async def _pay_stake(
        self, session: AsyncSession, stake_id: int, today: date
    ) -> StakeOutcome:
        stake_repo = StakeRepository(session)
        user_repo = UserRepository(session)

        stake = await stake_repo.get_for_update(stake_id)
        if stake is None:
            raise StakeProcessingError(f"Stake {stake_id} not found")

        user = await user_repo.get_for_update(stake.user_id)
        if user is None:
            raise StakeProcessingError(
                f"Owner {stake.user_id} of stake {stake_id} not found"
            )

        decision, qualification = await QualificationEngine(session).decide(
            stake, user, today
        )

        if qualification is not None:
            self._refresh_display_cache(stake, user, qualification)

        if decision.compounding_broken:
            stake.compounding_active = False
            stake.compounding_days_without_withdrawal = 0
            self.logger.info(
                "Compounding ended by withdrawal",
                extra={"stake_id": stake.id, "user_id": user.id},
            )

        if not decision.due:
            return StakeOutcome(
                stake_id, SKIPPED, reason=decision.reason, user_id=user.id
            )

        await self._apply_payment(session, stake, user, decision, today)

        return StakeOutcome(
            stake_id,
            PAID,
            reason=decision.reason,
            user_id=user.id,
            amount=decision.amount,
            payment_type=decision.regime.value,
            program=stake.program,
            rate=decision.rate,
        )

    async def _apply_payment(
        self,
        session: AsyncSession,
        stake,
        user,
        decision: RoiDecision,
        today: date,
    ) -> None:
        """Credit the wallet, advance the stake and record the payment."""
        tx_type = (
            TransactionType.COMPOUNDING
            if decision.regime is RoiRegime.COMPOUNDING
            else TransactionType.ROI
        )
        await TransactionRepository(session).credit_income(
            user,
            decision.amount,
            tx_type,
            description=(
                f"Daily {decision.regime.value} for stake #{stake.id} "
                f"({stake.program}) at {decision.rate}"
            ),
            reference=roi_reference(stake.id, today),
        )

        stake.total_roi_earned = stake.total_roi_earned + decision.amount
        stake.last_roi_paid_on = today

        await RoiPaymentRepository(session).append_payment_record(
            user_id=user.id,
            stake_id=stake.id,
            amount=decision.amount,
            roi_rate=decision.rate,
            basis_amount=decision.basis,
            payment_type=RoiPaymentType(decision.regime.value).value,
            program=stake.program,
            compounding_day=decision.compounding_day,
            payment_date=today,
        )

        self.logger.debug(
            "ROI paid",
            extra={
                "stake_id": stake.id,
                "user_id": user.id,
                "amount": str(decision.amount),
                "regime": decision.regime.value,
            },
        )

    @staticmethod
    def _refresh_display_cache(
        stake, user, qualification: EnhancedQualification
    ) -> None:
        """Mirror the fresh qualification into the display-only flags."""
        now = utc_now()
        if stake.enhanced_qualified != qualification.qualified:
            stake.enhanced_qualified = qualification.qualified
            stake.enhanced_qualified_at = now if qualification.qualified else None
        if user.enhanced_roi_qualified != qualification.qualified:
            user.enhanced_roi_qualified = qualification.qualified
            user.enhanced_roi_qualified_at = now if qualification.qualified else None

    @staticmethod
    def _summarize(
        outcomes: list[StakeOutcome],
        total_stakes: int,
        today: date,
        started: float,
    ) -> dict[str, Any]:
        paid = [o for o in outcomes if o.status == PAID]
        return {
            "success": True,
            "day": today.isoformat(),
            "processed_stakes": len(paid),
            "total_stakes": total_stakes,
            "total_roi_paid": sum((o.amount for o in paid), ZERO),
            "error_count": sum(1 for o in outcomes if o.status == FAILED),
            "skipped_stakes": sum(1 for o in outcomes if o.status == SKIPPED),
            "processing_time": round(time.monotonic() - started, 3),
            "results": [o.as_result() for o in paid],
        }

    async def _already_paid(self, stake_id: int, today: date) -> bool:
        async with self.session_maker() as session:
            return await RoiPaymentRepository(session).exists_for_day(stake_id, today)

    async def _run_followup(
        self,
        name: str,
        step: Callable[[], Awaitable[dict[str, Any]]] | None,
    ) -> dict[str, Any] | None:
        """Run a post-pass step; its failure does not undo the ROI pass."""
        if step is None:
            return None
        try:
            return await step()
        except Exception as e:
            self.logger.exception(
                f"Post-ROI {name} step failed",
                extra={"step": name, "error": str(e)},
            )
            return {"success": False, "error": str(e)}
