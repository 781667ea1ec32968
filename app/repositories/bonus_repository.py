"""
Bonus repositories.

Data access for matching bonuses and level overrides.
"""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.level_override import LevelOverride
from app.models.matching_bonus import MatchingBonus
from app.repositories.base import BaseRepository


class MatchingBonusRepository(BaseRepository[MatchingBonus]):
    """Matching bonus repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize matching bonus repository."""
        super().__init__(MatchingBonus, session)

    async def exists_for_day(self, user_id: int, bonus_date: date) -> bool:
        """Check whether a user already received a matching bonus for the day."""
        return await self.exists(user_id=user_id, bonus_date=bonus_date)


class LevelOverrideRepository(BaseRepository[LevelOverride]):
    """Level override repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize level override repository."""
        super().__init__(LevelOverride, session)
