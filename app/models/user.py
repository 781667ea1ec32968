"""
User model.

Represents a platform member with a principal and an income wallet.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.config.programs import ProgramType, RankType
from app.models.base import Base
from app.models.types import MoneyType


class User(Base):
    """User model - platform members and their wallets."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'principal_balance >= 0',
            name='check_user_principal_non_negative'
        ),
        CheckConstraint(
            'income_balance >= 0', name='check_user_income_non_negative'
        ),
        CheckConstraint(
            'income_total_earned >= 0',
            name='check_user_total_earned_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    username: Mapped[str | None] = mapped_column(
        String(255), nullable=True, unique=True, index=True
    )
    email: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Sponsor (direct referrer)
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Network standing
    rank: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RankType.BRONZE.value
    )
    current_program: Mapped[str] = mapped_column(
        String(4), nullable=False, default=ProgramType.I.value
    )

    # Principal wallet (locked capital)
    principal_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    # Income wallet
    income_balance: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    income_total_earned: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    income_total_withdrawn: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    income_last_withdrawal: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Display cache, never trusted for payment decisions
    enhanced_roi_qualified: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    enhanced_roi_qualified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
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
            f"<User(id={self.id}, username={self.username!r}, "
            f"rank={self.rank}, income={self.income_balance})>"
        )
