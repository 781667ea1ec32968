"""
Reconciliation entry model.

Records ledger inconsistencies found after the fact.
"""

from datetime import UTC, date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ReconciliationEntry(Base):
    """Ledger mismatch flagged for operator review."""

    __tablename__ = "reconciliation_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    kind: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    stake_id: Mapped[int | None] = mapped_column(
        ForeignKey("stakes.id", ondelete="CASCADE"), nullable=True
    )
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    payment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    details: Mapped[str] = mapped_column(Text, nullable=False)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReconciliationEntry(id={self.id}, kind={self.kind}, "
            f"stake_id={self.stake_id}, user_id={self.user_id})>"
        )
