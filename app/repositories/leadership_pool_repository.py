"""
Leadership pool repository.

Monthly pool lookup, tier persistence and the distribution check-and-set.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import PoolStatus
from app.models.leadership_pool import LeadershipPool, LeadershipPoolTier
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class LeadershipPoolRepository(BaseRepository[LeadershipPool]):
    """Leadership pool repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize leadership pool repository."""
        super().__init__(LeadershipPool, session)

    async def find_pool(self, program: str, month: date) -> LeadershipPool | None:
        """
        Get a program's pool for a month.

        Args:
            program: Program code
            month: First day of the month

        Returns:
            Pool or None
        """
        return await self.get_by(program=program, month=month)

    async def find_pool_for_update(
        self, program: str, month: date
    ) -> LeadershipPool | None:
        """Get a pool holding a row lock."""
        await self.session.flush()
        stmt = (
            select(LeadershipPool)
            .where(LeadershipPool.program == program, LeadershipPool.month == month)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, program: str, month: date) -> LeadershipPool:
        """
        Get the month's pool locked, creating it on first deposit.

        Raises:
            IntegrityError: If a concurrent transaction created the same
                pool first; the caller's transaction must be retried
        """
        pool = await self.find_pool_for_update(program, month)
        if pool:
            return pool

        return await self.create(
            program=program,
            month=month,
            total_deposits=Decimal("0"),
            status=PoolStatus.COLLECTING.value,
        )

    async def mark_ready(self, pool_id: int) -> bool:
        """
        Close a collecting pool to further deposits.

        Returns:
            True if this call closed the pool
        """
        stmt = (
            update(LeadershipPool)
            .where(
                LeadershipPool.id == pool_id,
                LeadershipPool.status == PoolStatus.COLLECTING.value,
            )
            .values(status=PoolStatus.READY.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def mark_distributed(self, pool_id: int) -> bool:
        """
        Atomically flip a ready pool to distributed.

        Returns:
            True if this call performed the transition, False if the
            pool was not ready (already distributed)
        """
        stmt = (
            update(LeadershipPool)
            .where(
                LeadershipPool.id == pool_id,
                LeadershipPool.status == PoolStatus.READY.value,
            )
            .values(
                status=PoolStatus.DISTRIBUTED.value,
                distributed_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def get_tiers(self, pool_id: int) -> dict[str, LeadershipPoolTier]:
        """Get a pool's tier rows keyed by tier name."""
        stmt = select(LeadershipPoolTier).where(LeadershipPoolTier.pool_id == pool_id)
        result = await self.session.execute(stmt)
        return {tier.tier: tier for tier in result.scalars().all()}

    async def add_tier(self, **data) -> LeadershipPoolTier:
        """Create a tier row."""
        tier = LeadershipPoolTier(**data)
        self.session.add(tier)
        await self.session.flush()
        return tier
