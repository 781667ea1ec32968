"""
ROI payment model.

Immutable record of one daily disbursement for one stake.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, RateType


class RoiPayment(Base):
    """ROI payment - append-only, at most one per stake per UTC day."""

    __tablename__ = "roi_payments"
    __table_args__ = (
        UniqueConstraint(
            'stake_id', 'payment_date', name='uq_roi_payment_stake_day'
        ),
        CheckConstraint('amount >= 0', name='check_roi_payment_amount_non_negative'),
        Index('idx_roi_payment_user_date', 'user_id', 'payment_date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    stake_id: Mapped[int] = mapped_column(
        ForeignKey("stakes.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    roi_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    basis_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    payment_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    program: Mapped[str] = mapped_column(String(4), nullable=False)
    # 0 for non-compounding payments
    compounding_day: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RoiPayment(id={self.id}, stake_id={self.stake_id}, "
            f"amount={self.amount}, type={self.payment_type}, "
            f"date={self.payment_date})>"
        )
