"""
Unit tests for the daily ROI decision.

Tests cover:
- Regime precedence (compounding, enhanced, base)
- Basis of each regime
- Skip reasons and malformed stakes
- Compounding sessions ended by a withdrawal
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from app.services.roi.qualification import RoiRegime, decide_roi, is_compounding_broken
from app.utils.exceptions import QualificationError


class TestRegimePrecedence:
    """Test which regime pays."""

    def test_program_one_base_roi(self, make_snapshot, today, not_qualified):
        """1000 in Program I pays 7.5 at the base rate."""
        decision = decide_roi(make_snapshot(), today, not_qualified)

        assert decision.due is True
        assert decision.regime is RoiRegime.BASE
        assert decision.rate == Decimal("0.0075")
        assert decision.basis == Decimal("1000")
        assert decision.amount == Decimal("7.5")

    def test_enhanced_when_qualified(self, make_snapshot, today, qualified):
        decision = decide_roi(
            make_snapshot(principal=Decimal("5000")), today, qualified
        )

        assert decision.regime is RoiRegime.ENHANCED
        assert decision.rate == Decimal("0.0085")
        assert decision.amount == Decimal("42.5")

    def test_compounding_beats_enhanced(self, make_snapshot, today, qualified):
        """Compounding pays on the whole income balance, not principal."""
        snapshot = make_snapshot(
            compounding_active=True,
            compounding_days=9,
            compounding_started_at=datetime(2026, 3, 1, tzinfo=UTC),
            income_balance=Decimal("2000"),
        )

        decision = decide_roi(snapshot, today, qualified)

        assert decision.regime is RoiRegime.COMPOUNDING
        assert decision.basis == Decimal("2000")
        assert decision.amount == Decimal("20")
        assert decision.compounding_day == 9

    def test_compounding_day_zero_for_other_regimes(
        self, make_snapshot, today, not_qualified
    ):
        decision = decide_roi(make_snapshot(compounding_days=4), today, not_qualified)

        assert decision.compounding_day == 0

    def test_stake_base_rate_used(self, make_snapshot, today, not_qualified):
        decision = decide_roi(
            make_snapshot(base_rate=Decimal("0.0080")), today, not_qualified
        )

        assert decision.amount == Decimal("8")

    def test_amount_rounded_down(self, make_snapshot, today, not_qualified):
        decision = decide_roi(
            make_snapshot(principal=Decimal("0.00000133")), today, not_qualified
        )

        assert decision.due is False
        assert decision.reason == "zero_amount"


class TestSkips:
    """Test stakes that are not paid."""

    def test_inactive(self, make_snapshot, today, qualified):
        decision = decide_roi(make_snapshot(is_active=False), today, qualified)

        assert decision.due is False
        assert decision.reason == "inactive"

    def test_already_paid_today(self, make_snapshot, today, not_qualified):
        decision = decide_roi(
            make_snapshot(last_roi_paid_on=today), today, not_qualified
        )

        assert decision.due is False
        assert decision.reason == "already_paid"

    def test_paid_yesterday_is_due(self, make_snapshot, today, not_qualified):
        decision = decide_roi(
            make_snapshot(last_roi_paid_on=date(2026, 3, 9)), today, not_qualified
        )

        assert decision.due is True

    def test_compounding_on_empty_income_pays_nothing(
        self, make_snapshot, today, not_qualified
    ):
        snapshot = make_snapshot(
            compounding_active=True,
            compounding_started_at=datetime(2026, 3, 1, tzinfo=UTC),
            income_balance=Decimal("0"),
        )

        decision = decide_roi(snapshot, today, not_qualified)

        assert decision.due is False
        assert decision.reason == "zero_amount"

    def test_unknown_program_raises(self, make_snapshot, today, not_qualified):
        with pytest.raises(QualificationError):
            decide_roi(make_snapshot(program="IX"), today, not_qualified)

    def test_non_positive_principal_raises(self, make_snapshot, today, not_qualified):
        with pytest.raises(QualificationError):
            decide_roi(make_snapshot(principal=Decimal("0")), today, not_qualified)


class TestBrokenCompounding:
    """Test withdrawals after compounding started."""

    def test_withdrawal_after_start_breaks(self, make_snapshot):
        snapshot = make_snapshot(
            compounding_active=True,
            compounding_started_at=datetime(2026, 3, 1, tzinfo=UTC),
            income_last_withdrawal=datetime(2026, 3, 5, tzinfo=UTC),
        )

        assert is_compounding_broken(snapshot) is True

    def test_withdrawal_before_start_does_not_break(self, make_snapshot):
        snapshot = make_snapshot(
            compounding_active=True,
            compounding_started_at=datetime(2026, 3, 5, tzinfo=UTC),
            income_last_withdrawal=datetime(2026, 3, 1, tzinfo=UTC),
        )

        assert is_compounding_broken(snapshot) is False

    def test_inactive_compounding_never_broken(self, make_snapshot):
        snapshot = make_snapshot(
            income_last_withdrawal=datetime(2026, 3, 5, tzinfo=UTC),
        )

        assert is_compounding_broken(snapshot) is False

    def test_broken_session_falls_back_to_base(
        self, make_snapshot, today, not_qualified
    ):
        snapshot = make_snapshot(
            compounding_active=True,
            compounding_started_at=datetime(2026, 3, 1, tzinfo=UTC),
            income_last_withdrawal=datetime(2026, 3, 5, tzinfo=UTC),
            income_balance=Decimal("5000"),
        )

        decision = decide_roi(snapshot, today, not_qualified)

        assert decision.regime is RoiRegime.BASE
        assert decision.amount == Decimal("7.5")
        assert decision.compounding_broken is True
