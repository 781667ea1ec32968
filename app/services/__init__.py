"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    BatchService,
    log_operation,
    transaction,
)

# Network Bonuses
from app.services.bonus import LevelOverrideService, MatchingBonusEngine

# Leadership Pools
from app.services.leadership import LeadershipPoolDistributor

# Binary Tree & Ranks
from app.services.network import RankService, TreeService
from app.services.reconciliation_service import ReconciliationService

# Daily ROI
from app.services.roi import (
    CompoundingCounterUpdater,
    DailyRoiProcessor,
    QualificationEngine,
)
from app.services.stake_service import StakeService
from app.services.staking_operations import StakingOperations

__all__ = [
    "BaseService",
    "BatchService",
    "log_operation",
    "transaction",
    "LevelOverrideService",
    "MatchingBonusEngine",
    "LeadershipPoolDistributor",
    "RankService",
    "TreeService",
    "ReconciliationService",
    "CompoundingCounterUpdater",
    "DailyRoiProcessor",
    "QualificationEngine",
    "StakeService",
    "StakingOperations",
]
