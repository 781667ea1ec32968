"""
Binary tree node model.

Each user occupies one node. Leg volumes are sums of personal volume in the
left and right subtrees.
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

from app.models.base import Base
from app.models.types import MoneyType


class TreeNode(Base):
    """Binary tree node with leg volume totals."""

    __tablename__ = "tree_nodes"
    __table_args__ = (
        CheckConstraint(
            "position IN ('root', 'left', 'right')",
            name='check_tree_node_position'
        ),
        CheckConstraint('depth >= 0', name='check_tree_node_depth_non_negative'),
        CheckConstraint(
            'matched_volume >= 0', name='check_tree_node_matched_non_negative'
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("tree_nodes.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    left_child_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    right_child_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )

    position: Mapped[str] = mapped_column(String(10), nullable=False)
    # Segments from the root, e.g. "L-R-L"; empty for the root
    tree_path: Mapped[str] = mapped_column(String(2000), default="", nullable=False)
    depth: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Volumes
    personal_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    left_leg_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    right_leg_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    left_leg_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    right_leg_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Cumulative volume already paired by the matching bonus
    matched_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

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
            f"<TreeNode(id={self.id}, user_id={self.user_id}, "
            f"position={self.position}, depth={self.depth})>"
        )
