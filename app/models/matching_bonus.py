"""
Matching bonus model.

Daily binary matching payout, one row per user per day.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, PercentType


class MatchingBonus(Base):
    """Binary matching bonus paid for one day."""

    __tablename__ = "matching_bonuses"
    __table_args__ = (
        UniqueConstraint('user_id', 'bonus_date', name='uq_matching_bonus_user_day'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bonus_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # Snapshot at calculation time
    left_leg_volume: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    right_leg_volume: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    matched_volume: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    user_rank: Mapped[str] = mapped_column(String(20), nullable=False)
    program: Mapped[str] = mapped_column(String(4), nullable=False)
    matching_rate: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    daily_cap: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    bonus_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<MatchingBonus(user_id={self.user_id}, date={self.bonus_date}, "
            f"amount={self.bonus_amount})>"
        )
