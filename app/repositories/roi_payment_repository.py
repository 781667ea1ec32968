"""
ROI payment repository.

Append-only access to daily ROI payment records.
"""

from datetime import date

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.level_override import LevelOverride
from app.models.roi_payment import RoiPayment
from app.repositories.base import BaseRepository


class RoiPaymentRepository(BaseRepository[RoiPayment]):
    """ROI payment repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ROI payment repository."""
        super().__init__(RoiPayment, session)

    async def append_payment_record(self, **data) -> RoiPayment:
        """
        Append a payment record.

        The (stake_id, payment_date) unique constraint rejects a second
        record for the same stake and day with IntegrityError on flush.
        """
        return await self.create(**data)

    async def exists_for_day(self, stake_id: int, payment_date: date) -> bool:
        """Check whether a stake already has a payment for the day."""
        return await self.exists(stake_id=stake_id, payment_date=payment_date)

    async def find_without_overrides(self, payment_date: date) -> list[RoiPayment]:
        """
        Get positive payments of a day that have no override rows yet.

        Args:
            payment_date: Payment day

        Returns:
            Payments ordered by ID
        """
        has_override = exists().where(LevelOverride.source_payment_id == RoiPayment.id)
        stmt = (
            select(RoiPayment)
            .where(
                RoiPayment.payment_date == payment_date,
                RoiPayment.amount > 0,
                ~has_override,
            )
            .order_by(RoiPayment.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
