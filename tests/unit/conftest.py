"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Stake snapshot builder for ROI decisions
- Qualification results
"""

from datetime import date
from decimal import Decimal

import pytest

from app.services.roi.qualification import EnhancedQualification, StakeSnapshot


@pytest.fixture
def make_snapshot():
    """
    Build a StakeSnapshot with Program I defaults.

    Default values:
    - principal: 1000
    - base_rate: 0.0075, compounding_rate: 0.0100
    - active, never paid, compounding off
    - income_balance: 0

    Returns:
        Callable accepting field overrides
    """
    def _make(**overrides) -> StakeSnapshot:
        fields = {
            "stake_id": 1,
            "user_id": 100,
            "program": "I",
            "principal": Decimal("1000"),
            "base_rate": Decimal("0.0075"),
            "compounding_rate": Decimal("0.0100"),
            "is_active": True,
            "last_roi_paid_on": None,
            "compounding_active": False,
            "compounding_days": 0,
            "compounding_started_at": None,
            "income_balance": Decimal("0"),
            "income_last_withdrawal": None,
        }
        fields.update(overrides)
        return StakeSnapshot(**fields)

    return _make


@pytest.fixture
def today() -> date:
    """Fixed UTC business day."""
    return date(2026, 3, 10)


@pytest.fixture
def not_qualified() -> EnhancedQualification:
    return EnhancedQualification.not_qualified()


@pytest.fixture
def qualified() -> EnhancedQualification:
    return EnhancedQualification(
        qualified=True,
        total_stake=Decimal("5000"),
        qualified_referrals=1,
        required_total=Decimal("5000"),
        required_referrals=1,
    )
