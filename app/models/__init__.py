"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.enums import (
    OverrideActivity,
    PoolStatus,
    ReconciliationKind,
    RoiPaymentType,
    TransactionStatus,
    TransactionType,
    TreePosition,
    WalletType,
)
from app.models.leadership_pool import LeadershipPool, LeadershipPoolTier
from app.models.level_override import LevelOverride
from app.models.matching_bonus import MatchingBonus
from app.models.reconciliation_entry import ReconciliationEntry
from app.models.roi_payment import RoiPayment
from app.models.stake import Stake
from app.models.transaction import Transaction
from app.models.tree_node import TreeNode
from app.models.user import User

__all__ = [
    "Base",
    # Core
    "User",
    "Stake",
    "RoiPayment",
    "Transaction",
    # Network
    "TreeNode",
    "MatchingBonus",
    "LevelOverride",
    # Pools
    "LeadershipPool",
    "LeadershipPoolTier",
    # Audit
    "ReconciliationEntry",
    # Enums
    "OverrideActivity",
    "PoolStatus",
    "ReconciliationKind",
    "RoiPaymentType",
    "TransactionStatus",
    "TransactionType",
    "TreePosition",
    "WalletType",
]
