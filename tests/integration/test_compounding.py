"""
Integration tests for compounding counters.

Tests cover:
- Activation once days and income thresholds are met
- Reset on withdrawal
- One increment per UTC day
- Compounding ROI after activation
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from app.models import RoiPayment, Stake
from app.services.roi.compounding_updater import CompoundingCounterUpdater
from app.services.roi.daily_processor import DailyRoiProcessor

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def updater(session_maker):
    return CompoundingCounterUpdater(session_maker)


class TestActivation:
    """Test compounding activation."""

    @pytest.mark.asyncio
    async def test_program_four_activates_after_one_day(self, factory, updater):
        user = await factory.user(income_balance=Decimal("600"))
        stake = await factory.stake(user, program="IV", amount=Decimal("1000"))

        result = await updater.run(NOW)

        assert result["activated_count"] == 1
        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_active is True
        assert stored.compounding_days_without_withdrawal == 1
        assert stored.compounding_rate == Decimal("0.0115")

    @pytest.mark.asyncio
    async def test_low_income_does_not_activate(self, factory, updater):
        user = await factory.user(income_balance=Decimal("400"))
        stake = await factory.stake(user, program="IV", amount=Decimal("1000"))

        result = await updater.run(NOW)

        assert result["activated_count"] == 0
        assert result["incremented_count"] == 1
        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_active is False

    @pytest.mark.asyncio
    async def test_activated_stake_pays_compounding(
        self, factory, updater, session_maker
    ):
        user = await factory.user(income_balance=Decimal("600"))
        stake = await factory.stake(user, program="IV", amount=Decimal("1000"))

        await updater.run(NOW)
        await DailyRoiProcessor(session_maker).run(date(2026, 3, 11))

        payment = (await factory.all(RoiPayment, stake_id=stake.id))[0]
        assert payment.payment_type == "compounding"
        assert payment.amount == Decimal("6.9")


class TestCounter:
    """Test the day counter."""

    @pytest.mark.asyncio
    async def test_one_increment_per_day(self, factory, updater):
        user = await factory.user()
        stake = await factory.stake(user)

        first = await updater.run(datetime(2026, 3, 10, 10, 0, tzinfo=UTC))
        second = await updater.run(datetime(2026, 3, 10, 11, 0, tzinfo=UTC))

        assert first["incremented_count"] == 1
        assert second["incremented_count"] == 0
        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_days_without_withdrawal == 1

    @pytest.mark.asyncio
    async def test_consecutive_days_accumulate(self, factory, updater):
        user = await factory.user()
        stake = await factory.stake(user)

        for day in (10, 11, 12):
            await updater.run(datetime(2026, 3, day, 1, 0, tzinfo=UTC))

        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_days_without_withdrawal == 3

    @pytest.mark.asyncio
    async def test_withdrawal_resets_counter(self, factory, updater):
        user = await factory.user(
            income_balance=Decimal("100"),
            income_last_withdrawal=datetime(2026, 3, 10, 8, 0, tzinfo=UTC),
        )
        stake = await factory.stake(
            user,
            compounding_days_without_withdrawal=3,
            compounding_counted_on=date(2026, 3, 9),
            compounding_checked_at=datetime(2026, 3, 9, 12, 0, tzinfo=UTC),
        )

        result = await updater.run(NOW)

        assert result["reset_count"] == 1
        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_days_without_withdrawal == 0
        assert stored.compounding_active is False

    @pytest.mark.asyncio
    async def test_late_withdrawal_caught_next_day(self, factory, updater):
        """A withdrawal after the last check but before midnight still resets."""
        user = await factory.user(
            income_last_withdrawal=datetime(2026, 3, 9, 23, 30, tzinfo=UTC),
        )
        stake = await factory.stake(
            user,
            compounding_days_without_withdrawal=3,
            compounding_counted_on=date(2026, 3, 9),
            compounding_checked_at=datetime(2026, 3, 9, 23, 0, tzinfo=UTC),
        )

        await updater.run(datetime(2026, 3, 10, 0, 5, tzinfo=UTC))

        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_days_without_withdrawal == 0
        assert stored.compounding_counted_on == date(2026, 3, 9)

    @pytest.mark.asyncio
    async def test_day_after_late_withdrawal_still_counts(self, factory, updater):
        """Only the withdrawal day is lost, not the clean day that follows."""
        user = await factory.user(
            income_last_withdrawal=datetime(2026, 3, 9, 23, 30, tzinfo=UTC),
        )
        stake = await factory.stake(
            user,
            compounding_days_without_withdrawal=3,
            compounding_counted_on=date(2026, 3, 9),
            compounding_checked_at=datetime(2026, 3, 9, 23, 0, tzinfo=UTC),
        )

        await updater.run(datetime(2026, 3, 10, 0, 5, tzinfo=UTC))
        result = await updater.run(datetime(2026, 3, 10, 1, 5, tzinfo=UTC))

        assert result["incremented_count"] == 1
        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_days_without_withdrawal == 1
        assert stored.compounding_counted_on == date(2026, 3, 10)

    @pytest.mark.asyncio
    async def test_unknown_program_counted_as_error(self, factory, updater):
        user = await factory.user()
        await factory.stake(
            user,
            program="IX",
            base_roi_rate=Decimal("0.0075"),
            compounding_rate=Decimal("0.0100"),
        )
        await factory.stake(user)

        result = await updater.run(NOW)

        assert result["error_count"] == 1
        assert result["incremented_count"] == 1
