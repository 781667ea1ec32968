"""
Transaction model.

Ledger of wallet movements. Every income credit writes exactly one row.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import TransactionStatus
from app.models.types import MoneyType


class Transaction(Base):
    """Transaction model - wallet ledger entries."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint('amount >= 0', name='check_transaction_amount_non_negative'),
        Index('idx_transaction_user_created', 'user_id', 'created_at'),
        Index('idx_transaction_type_status', 'type', 'status'),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    type: Mapped[str] = mapped_column(String(30), nullable=False)
    wallet_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    balance_before: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.COMPLETED.value
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # Idempotency key, e.g. ROI-<stake_id>-<YYYY-MM-DD>
    reference: Mapped[str | None] = mapped_column(
        String(100), nullable=True, unique=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount})>"
        )
