"""
Integration tests for the staking operations facade.

The facade wires the full daily cycle: ROI pass, compounding counters,
then overrides and matching.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from app.models import LevelOverride, RoiPayment, Stake, User
from app.services.staking_operations import StakingOperations

TODAY = date(2026, 3, 10)


@pytest.fixture
def operations(session_maker):
    return StakingOperations(session_maker)


class TestDailyCycle:
    """Test the full daily cycle."""

    @pytest.mark.asyncio
    async def test_manual_run_chains_follow_ups(self, factory, operations):
        sponsor = await factory.user()
        member = await factory.user(referrer=sponsor)
        stake = await factory.stake(member)

        result = await operations.run_manual_roi(TODAY)

        assert result["success"] is True
        assert result["processed_stakes"] == 1
        assert result["compounding"]["success"] is True
        assert result["compounding"]["incremented_count"] == 1
        assert result["matching"]["override_count"] == 1

        stored = await factory.get(Stake, stake.id)
        assert stored.compounding_days_without_withdrawal == 1
        assert stored.compounding_counted_on == TODAY
        assert (await factory.get(User, sponsor.id)).income_balance == Decimal("0.375")

    @pytest.mark.asyncio
    async def test_rerun_is_noop(self, factory, operations):
        sponsor = await factory.user()
        member = await factory.user(referrer=sponsor)
        await factory.stake(member)

        await operations.run_daily_roi(TODAY)
        again = await operations.run_daily_roi(TODAY)

        assert again["processed_stakes"] == 0
        assert again["compounding"]["incremented_count"] == 0
        assert again["matching"]["paid_count"] == 0
        assert len(await factory.all(RoiPayment)) == 1
        assert len(await factory.all(LevelOverride)) == 1


class TestAdministration:
    """Test the remaining facade operations."""

    @pytest.mark.asyncio
    async def test_compounding_counters(self, factory, operations):
        user = await factory.user()
        await factory.stake(user)

        result = await operations.update_compounding_counters(
            datetime(2026, 3, 10, 6, 0, tzinfo=UTC)
        )

        assert result["incremented_count"] == 1

    @pytest.mark.asyncio
    async def test_ranks_and_reconcile(self, factory, operations):
        await factory.user(rank="Gold")

        ranks = await operations.update_all_user_ranks()
        reconcile = await operations.reconcile()

        assert ranks["changed"] == 1
        assert reconcile["flagged"] == 0

    @pytest.mark.asyncio
    async def test_pool_preview_and_distribution(self, factory, operations):
        await operations.pool_distributor.add_deposit(
            "I", Decimal("1000"), datetime(2026, 1, 10, tzinfo=UTC)
        )

        preview = await operations.calculate_leadership_distribution("I", "2026-01")
        result = await operations.distribute_leadership_pool("I", "2026-01")
        monthly = await operations.distribute_previous_month_pools(
            datetime(2026, 2, 1, tzinfo=UTC)
        )

        assert preview["total_deposits"] == Decimal("1000")
        assert result["distributed"] is True
        assert monthly["results"]["I"]["already_distributed"] is True
