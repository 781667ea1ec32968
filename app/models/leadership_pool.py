"""
Leadership pool models.

One pool per program per calendar month, accruing a share of that month's
stake deposits. Each pool has one tier row per rank above Bronze.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import PoolStatus
from app.models.types import MoneyType, RateType


class LeadershipPool(Base):
    """Monthly leadership pool for one program."""

    __tablename__ = "leadership_pools"
    __table_args__ = (
        UniqueConstraint('program', 'month', name='uq_leadership_pool_program_month'),
        CheckConstraint(
            'total_deposits >= 0', name='check_pool_deposits_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    program: Mapped[str] = mapped_column(String(4), nullable=False)
    # First day of the month
    month: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_deposits: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=PoolStatus.COLLECTING.value,
        nullable=False,
        index=True
    )
    distributed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

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
            f"<LeadershipPool(id={self.id}, program={self.program}, "
            f"month={self.month}, status={self.status})>"
        )


class LeadershipPoolTier(Base):
    """Per-rank slice of a leadership pool."""

    __tablename__ = "leadership_pool_tiers"
    __table_args__ = (
        UniqueConstraint('pool_id', 'tier', name='uq_pool_tier'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    pool_id: Mapped[int] = mapped_column(
        ForeignKey("leadership_pools.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    tier: Mapped[str] = mapped_column(String(20), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    qualified_members: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    per_member_share: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LeadershipPoolTier(pool_id={self.pool_id}, tier={self.tier}, "
            f"total={self.total_amount}, members={self.qualified_members})>"
        )
