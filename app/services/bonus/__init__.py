"""
Bonus services package.

- level_overrides: sponsor-chain override commissions
- matching_bonus_engine: daily overrides and binary matching bonus
"""

from app.services.bonus.level_overrides import LevelOverrideService
from app.services.bonus.matching_bonus_engine import MatchingBonusEngine

__all__ = [
    "LevelOverrideService",
    "MatchingBonusEngine",
]
