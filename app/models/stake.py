"""
Stake model.

A principal deposit committed by a user under one program. Stakes are never
deleted, only deactivated.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, RateType


class Stake(Base):
    """Stake model - principal earning daily ROI."""

    __tablename__ = "stakes"
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_stake_amount_positive'),
        CheckConstraint(
            'total_roi_earned >= 0',
            name='check_stake_roi_earned_non_negative'
        ),
        CheckConstraint(
            'compounding_days_without_withdrawal >= 0',
            name='check_stake_compounding_days_non_negative'
        ),
        Index('idx_stake_user_active', 'user_id', 'is_active'),
        Index('idx_stake_program_active', 'program', 'is_active'),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Owner
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Stake details
    program: Mapped[str] = mapped_column(String(4), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    base_roi_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False, index=True
    )

    # ROI tracking
    last_roi_paid_on: Mapped[date | None] = mapped_column(
        Date, nullable=True, index=True
    )
    total_roi_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Enhanced ROI display cache (refreshed after every fresh check)
    enhanced_qualified: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    enhanced_qualified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Compounding sub-state
    compounding_active: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    compounding_days_without_withdrawal: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    compounding_rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    compounding_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Day of the last counter increment (one increment per UTC day)
    compounding_counted_on: Mapped[date | None] = mapped_column(
        Date, nullable=True
    )
    # Last time the counter updater looked at this stake
    compounding_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Stake(id={self.id}, user_id={self.user_id}, "
            f"program={self.program}, amount={self.amount}, "
            f"active={self.is_active})>"
        )
