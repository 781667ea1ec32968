"""
ROI services package.

- qualification: pure regime decision and enhanced ROI qualification
- daily_processor: daily ROI pass over all active stakes
- compounding_updater: compounding day counters and activation
"""

from app.services.roi.compounding_updater import CompoundingCounterUpdater
from app.services.roi.daily_processor import DailyRoiProcessor
from app.services.roi.qualification import (
    EnhancedQualification,
    QualificationEngine,
    RoiDecision,
    RoiRegime,
    StakeSnapshot,
    decide_roi,
)

__all__ = [
    "CompoundingCounterUpdater",
    "DailyRoiProcessor",
    "EnhancedQualification",
    "QualificationEngine",
    "RoiDecision",
    "RoiRegime",
    "StakeSnapshot",
    "decide_roi",
]
