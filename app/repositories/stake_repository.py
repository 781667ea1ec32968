"""
Stake repository.

Data access layer for Stake model.
"""

from decimal import Decimal

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.roi_payment import RoiPayment
from app.models.stake import Stake
from app.models.user import User
from app.repositories.base import BaseRepository


class StakeRepository(BaseRepository[Stake]):
    """Stake repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stake repository."""
        super().__init__(Stake, session)

    async def find_active_stake_ids(self, program: str | None = None) -> list[int]:
        """
        Get IDs of active stakes.

        Only IDs are loaded; each stake is re-read under a lock
        by whoever processes it.

        Args:
            program: Optional program filter

        Returns:
            Stake IDs in ascending order
        """
        stmt = select(Stake.id).where(Stake.is_active.is_(True))
        if program:
            stmt = stmt.where(Stake.program == program)
        stmt = stmt.order_by(Stake.id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_total(self, user_id: int) -> Decimal:
        """
        Sum of a user's active stake amounts.

        Args:
            user_id: User ID

        Returns:
            Total active principal across stakes
        """
        stmt = select(func.coalesce(func.sum(Stake.amount), 0)).where(
            Stake.user_id == user_id,
            Stake.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        return Decimal(result.scalar() or 0)

    async def count_referrals_with_stake(
        self, referrer_id: int, min_total: Decimal
    ) -> int:
        """
        Count direct referrals whose active stakes total at least min_total.

        Args:
            referrer_id: Sponsor user ID
            min_total: Minimum active stake total per referral

        Returns:
            Number of qualifying direct referrals
        """
        totals = (
            select(Stake.user_id)
            .join(User, User.id == Stake.user_id)
            .where(
                User.referrer_id == referrer_id,
                Stake.is_active.is_(True),
            )
            .group_by(Stake.user_id)
            .having(func.sum(Stake.amount) >= min_total)
            .subquery()
        )
        stmt = select(func.count()).select_from(totals)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def find_paid_without_record(self) -> list[Stake]:
        """
        Find stakes whose last paid day has no ROI payment record.

        Returns:
            Stakes needing reconciliation
        """
        has_record = exists().where(
            RoiPayment.stake_id == Stake.id,
            RoiPayment.payment_date == Stake.last_roi_paid_on,
        )
        stmt = (
            select(Stake)
            .where(Stake.last_roi_paid_on.is_not(None), ~has_record)
            .order_by(Stake.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
