"""
User repository.

Data access layer for User model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def count_direct_referrals(self, user_id: int) -> int:
        """Count users directly sponsored by user_id."""
        return await self.count(referrer_id=user_id)

    async def find_active_ids(self) -> list[int]:
        """Get IDs of all active users."""
        stmt = select(User.id).where(User.is_active.is_(True)).order_by(User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_pool_members(
        self,
        rank: str,
        joined_before: datetime,
        min_principal: Decimal,
    ) -> list[User]:
        """
        Find users eligible for a leadership pool tier.

        Args:
            rank: Exact rank of the tier
            joined_before: Members must have joined before this moment
            min_principal: Minimum principal wallet balance

        Returns:
            Eligible users ordered by ID
        """
        stmt = (
            select(User)
            .where(
                User.rank == rank,
                User.is_active.is_(True),
                User.created_at < joined_before,
                User.principal_balance >= min_principal,
            )
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
