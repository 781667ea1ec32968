"""
Integration tests for leadership pools.

Tests cover:
- Accrual of monthly deposits
- Preview without side effects
- Exactly-once distribution
- Member eligibility
"""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
import pytest_asyncio

from app.models import LeadershipPool, LeadershipPoolTier, Transaction, User
from app.repositories.leadership_pool_repository import LeadershipPoolRepository
from app.services.leadership.pool_distributor import LeadershipPoolDistributor
from app.utils.exceptions import PoolClosedError

JOINED = datetime(2025, 12, 1, tzinfo=UTC)


@pytest.fixture
def distributor(session_maker):
    return LeadershipPoolDistributor(session_maker)


@pytest_asyncio.fixture
async def january_pool(factory, distributor):
    """Program I pool for 2026-01 with 100000 deposits and four candidates."""
    await distributor.add_deposit(
        "I", Decimal("60000"), datetime(2026, 1, 5, tzinfo=UTC)
    )
    await distributor.add_deposit(
        "I", Decimal("40000"), datetime(2026, 1, 20, tzinfo=UTC)
    )
    members = {
        "silver_one": await factory.user(
            rank="Silver", principal_balance=Decimal("1000"), created_at=JOINED
        ),
        "silver_two": await factory.user(
            rank="Silver", principal_balance=Decimal("1500"), created_at=JOINED
        ),
        "gold": await factory.user(
            rank="Gold", principal_balance=Decimal("2500"), created_at=JOINED
        ),
        "late_silver": await factory.user(
            rank="Silver",
            principal_balance=Decimal("1000"),
            created_at=datetime(2026, 2, 3, tzinfo=UTC),
        ),
        "small_silver": await factory.user(
            rank="Silver", principal_balance=Decimal("999"), created_at=JOINED
        ),
    }
    return members


class TestAccrual:
    """Test deposit accrual."""

    @pytest.mark.asyncio
    async def test_deposits_accumulate_per_month(self, factory, january_pool):
        pools = await factory.all(LeadershipPool, program="I")

        assert len(pools) == 1
        assert pools[0].month == date(2026, 1, 1)
        assert pools[0].total_deposits == Decimal("100000")
        assert pools[0].status == "collecting"

        tiers = {t.tier: t for t in await factory.all(LeadershipPoolTier, pool_id=pools[0].id)}
        assert tiers["Silver"].total_amount == Decimal("500")
        assert tiers["Ruby"].total_amount == Decimal("2000")

    @pytest.mark.asyncio
    async def test_new_month_opens_new_pool(self, factory, distributor):
        await distributor.add_deposit("I", Decimal("100"), datetime(2026, 1, 31, tzinfo=UTC))
        await distributor.add_deposit("I", Decimal("100"), datetime(2026, 2, 1, tzinfo=UTC))

        assert len(await factory.all(LeadershipPool, program="I")) == 2


class TestPreview:
    """Test dry-run distribution."""

    @pytest.mark.asyncio
    async def test_preview_shares(self, distributor, january_pool):
        preview = await distributor.calculate_distribution("I", "2026-01")

        silver = preview["tiers"]["Silver"]
        gold = preview["tiers"]["Gold"]
        assert preview["pool_found"] is True
        assert silver["qualified_members"] == 2
        assert silver["per_member_share"] == Decimal("250")
        assert gold["qualified_members"] == 1
        assert gold["per_member_share"] == Decimal("1000")
        assert preview["tiers"]["Diamond"]["per_member_share"] == Decimal("0")
        assert preview["total_payout"] == Decimal("1500")

    @pytest.mark.asyncio
    async def test_preview_does_not_pay(self, factory, distributor, january_pool):
        await distributor.calculate_distribution("I", date(2026, 1, 15))

        assert await factory.all(Transaction) == []
        pool = (await factory.all(LeadershipPool, program="I"))[0]
        assert pool.status == "collecting"

    @pytest.mark.asyncio
    async def test_preview_missing_pool(self, distributor):
        preview = await distributor.calculate_distribution("II", "2026-01")

        assert preview["pool_found"] is False
        assert preview["total_payout"] == Decimal("0")


class TestDistribution:
    """Test payouts."""

    @pytest.mark.asyncio
    async def test_distributes_once(self, factory, distributor, january_pool):
        first = await distributor.distribute("I", "2026-01")
        second = await distributor.distribute("I", "2026-01")

        assert first["distributed"] is True
        assert first["already_distributed"] is False
        assert first["members_credited"] == 3
        assert second["distributed"] is True
        assert second["already_distributed"] is True

        assert (await factory.get(User, january_pool["silver_one"].id)).income_balance == Decimal("250")
        assert (await factory.get(User, january_pool["silver_two"].id)).income_balance == Decimal("250")
        assert (await factory.get(User, january_pool["gold"].id)).income_balance == Decimal("1000")
        assert (await factory.get(User, january_pool["late_silver"].id)).income_balance == Decimal("0")
        assert (await factory.get(User, january_pool["small_silver"].id)).income_balance == Decimal("0")

        assert len(await factory.all(Transaction, type="leadership_pool")) == 3
        pool = (await factory.all(LeadershipPool, program="I"))[0]
        assert pool.status == "distributed"
        assert pool.distributed_at is not None

    @pytest.mark.asyncio
    async def test_tier_statistics_saved(self, factory, distributor, january_pool):
        await distributor.distribute("I", "2026-01")

        pool = (await factory.all(LeadershipPool, program="I"))[0]
        tiers = {t.tier: t for t in await factory.all(LeadershipPoolTier, pool_id=pool.id)}
        assert tiers["Silver"].qualified_members == 2
        assert tiers["Silver"].per_member_share == Decimal("250")
        assert tiers["Ruby"].qualified_members == 0

    @pytest.mark.asyncio
    async def test_missing_pool(self, distributor):
        result = await distributor.distribute("I", "2026-01")

        assert result["distributed"] is False

    @pytest.mark.asyncio
    async def test_previous_month(self, factory, distributor, january_pool):
        result = await distributor.distribute_previous_month(
            now=datetime(2026, 2, 1, 0, 5, tzinfo=UTC)
        )

        assert result["month"] == "2026-01-01"
        assert result["results"]["I"]["distributed"] is True
        assert result["results"]["II"]["distributed"] is False
        assert (await factory.get(User, january_pool["gold"].id)).income_balance == Decimal("1000")


class TestPoolLifecycle:
    """Test that a pool is only paid after its month has closed."""

    @pytest.mark.asyncio
    async def test_open_month_not_distributed(self, factory, distributor, january_pool):
        result = await distributor.distribute(
            "I", "2026-01", now=datetime(2026, 1, 25, tzinfo=UTC)
        )

        assert result["success"] is False
        assert result["distributed"] is False
        assert result["error"] == "Pool not ready for distribution"
        pool = (await factory.all(LeadershipPool, program="I"))[0]
        assert pool.status == "collecting"
        assert await factory.all(Transaction, type="leadership_pool") == []

    @pytest.mark.asyncio
    async def test_late_deposit_counts_toward_payout(
        self, factory, distributor, january_pool
    ):
        await distributor.distribute(
            "I", "2026-01", now=datetime(2026, 1, 25, tzinfo=UTC)
        )
        await distributor.add_deposit(
            "I", Decimal("100000"), datetime(2026, 1, 30, tzinfo=UTC)
        )

        result = await distributor.distribute(
            "I", "2026-01", now=datetime(2026, 2, 1, 0, 5, tzinfo=UTC)
        )

        assert result["distributed"] is True
        assert result["total_deposits"] == Decimal("200000")
        assert (await factory.get(User, january_pool["gold"].id)).income_balance == Decimal("2000")

    @pytest.mark.asyncio
    async def test_closed_pool_refuses_deposits(self, factory, distributor, january_pool):
        await distributor.distribute(
            "I", "2026-01", now=datetime(2026, 2, 1, 0, 5, tzinfo=UTC)
        )

        with pytest.raises(PoolClosedError):
            await distributor.add_deposit(
                "I", Decimal("5000"), datetime(2026, 1, 31, tzinfo=UTC)
            )

        pool = (await factory.all(LeadershipPool, program="I"))[0]
        assert pool.total_deposits == Decimal("100000")
        assert pool.status == "distributed"

    @pytest.mark.asyncio
    async def test_ready_pool_refuses_deposits(self, factory, distributor, session_maker):
        await distributor.add_deposit(
            "I", Decimal("1000"), datetime(2026, 1, 5, tzinfo=UTC)
        )
        async with session_maker() as session:
            pool = await LeadershipPoolRepository(session).find_pool("I", date(2026, 1, 1))
            assert await LeadershipPoolRepository(session).mark_ready(pool.id) is True
            await session.commit()

        with pytest.raises(PoolClosedError):
            await distributor.add_deposit(
                "I", Decimal("1000"), datetime(2026, 1, 6, tzinfo=UTC)
            )

    @pytest.mark.asyncio
    async def test_collecting_pool_cannot_skip_ready(self, distributor, session_maker):
        await distributor.add_deposit(
            "I", Decimal("1000"), datetime(2026, 1, 5, tzinfo=UTC)
        )
        async with session_maker() as session:
            repo = LeadershipPoolRepository(session)
            pool = await repo.find_pool("I", date(2026, 1, 1))

            assert await repo.mark_distributed(pool.id) is False
