"""
Level override model.

Commission paid to an upline sponsor on a downline member's activity.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
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
from app.models.types import MoneyType, PercentType


class LevelOverride(Base):
    """Level override commission."""

    __tablename__ = "level_overrides"
    __table_args__ = (
        UniqueConstraint(
            'source_payment_id', 'earner_id', name='uq_level_override_payment_earner'
        ),
        Index('idx_level_override_earner_date', 'earner_id', 'override_date'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    earner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    source_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # ROI payment that generated the override; null for deposit overrides
    source_payment_id: Mapped[int | None] = mapped_column(
        ForeignKey("roi_payments.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    referral_level: Mapped[int] = mapped_column(Integer, nullable=False)
    override_percentage: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    activity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    activity_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    override_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    program: Mapped[str] = mapped_column(String(4), nullable=False)
    override_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LevelOverride(earner_id={self.earner_id}, "
            f"source_user_id={self.source_user_id}, level={self.referral_level}, "
            f"amount={self.override_amount})>"
        )
