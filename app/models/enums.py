"""
Model enumerations.

Stored as plain strings in the database.
"""

from enum import Enum


class RoiPaymentType(str, Enum):
    """Regime that produced an ROI payment."""

    BASE_ROI = "base_roi"
    ENHANCED_ROI = "enhanced_roi"
    COMPOUNDING = "compounding"


class TransactionType(str, Enum):
    """Income ledger entry types."""

    ROI = "roi"
    COMPOUNDING = "compounding"
    MATCHING_BONUS = "matching_bonus"
    LEVEL_OVERRIDE = "level_override"
    LEADERSHIP_POOL = "leadership_pool"
    DEPOSIT = "deposit"


class TransactionStatus(str, Enum):
    """Ledger entry status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class WalletType(str, Enum):
    """User wallets."""

    PRINCIPAL = "principal"
    INCOME = "income"


class PoolStatus(str, Enum):
    """Leadership pool lifecycle."""

    COLLECTING = "collecting"
    READY = "ready"
    DISTRIBUTED = "distributed"


class TreePosition(str, Enum):
    """Placement of a node under its parent."""

    ROOT = "root"
    LEFT = "left"
    RIGHT = "right"


class OverrideActivity(str, Enum):
    """Downline activity that generates a level override."""

    DAILY_ROI = "daily_roi"
    DEPOSIT = "deposit"


class ReconciliationKind(str, Enum):
    """Invariant violations found by reconciliation."""

    MISSING_PAYMENT_RECORD = "missing_payment_record"
    EARNED_MISMATCH = "earned_mismatch"


# Transaction types that credit the income wallet
INCOME_CREDIT_TYPES: tuple[TransactionType, ...] = (
    TransactionType.ROI,
    TransactionType.COMPOUNDING,
    TransactionType.MATCHING_BONUS,
    TransactionType.LEVEL_OVERRIDE,
    TransactionType.LEADERSHIP_POOL,
)
