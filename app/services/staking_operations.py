"""
Staking operations facade.

Single entry point for the scheduler, the dramatiq actors and the manual
CLI. Every operation is stateless: whether work is already done is read
from the database, never from this object.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.database import async_session_maker
from app.services.bonus.matching_bonus_engine import MatchingBonusEngine
from app.services.leadership.pool_distributor import LeadershipPoolDistributor
from app.services.network.rank_service import RankService
from app.services.reconciliation_service import ReconciliationService
from app.services.roi.compounding_updater import CompoundingCounterUpdater
from app.services.roi.daily_processor import DailyRoiProcessor


class StakingOperations:
    """Administrative boundary over the daily financial pipeline."""

    def __init__(
        self, session_maker: async_sessionmaker[AsyncSession] | None = None
    ) -> None:
        """
        Wire the pipeline components.

        Args:
            session_maker: Session factory (defaults to the application's)
        """
        self.session_maker = session_maker or async_session_maker
        self.compounding_updater = CompoundingCounterUpdater(self.session_maker)
        self.matching_engine = MatchingBonusEngine(self.session_maker)
        self.roi_processor = DailyRoiProcessor(
            self.session_maker,
            compounding_updater=self.compounding_updater,
            matching_engine=self.matching_engine,
        )
        self.pool_distributor = LeadershipPoolDistributor(self.session_maker)

    async def run_daily_roi(self, today: date | None = None) -> dict[str, Any]:
        """Scheduled daily cycle: ROI pass, compounding counters, bonuses."""
        return await self.roi_processor.run(today)

    async def run_manual_roi(self, today: date | None = None) -> dict[str, Any]:
        """On-demand daily cycle; same contract as the scheduled run."""
        return await self.roi_processor.run(today)

    async def update_compounding_counters(
        self, now: datetime | None = None
    ) -> dict[str, Any]:
        """Hourly compounding counter pass."""
        return await self.compounding_updater.run(now)

    async def process_daily_matching_bonuses(
        self, today: date | None = None
    ) -> dict[str, Any]:
        """Level overrides and binary matching for a day."""
        return await self.matching_engine.process_daily_matching_bonuses(today)

    async def calculate_leadership_distribution(
        self, program: str, month: date | str
    ) -> dict[str, Any]:
        """Dry-run preview of a pool distribution."""
        return await self.pool_distributor.calculate_distribution(program, month)

    async def distribute_leadership_pool(
        self, program: str, month: date | str
    ) -> dict[str, Any]:
        """Pay out one pool; repeated calls are no-ops."""
        return await self.pool_distributor.distribute(program, month)

    async def distribute_previous_month_pools(
        self, now: datetime | None = None
    ) -> dict[str, Any]:
        """Monthly job: distribute last month's pool of every program."""
        return await self.pool_distributor.distribute_previous_month(now)

    async def update_all_user_ranks(self) -> dict[str, Any]:
        """Recalculate ranks of all active users."""
        async with self.session_maker() as session:
            return await RankService(session).update_all_user_ranks()

    async def reconcile(self) -> dict[str, Any]:
        """Flag ledger inconsistencies for operator review."""
        async with self.session_maker() as session:
            return await ReconciliationService(session).run()
