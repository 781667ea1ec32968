"""
Integration tests for binary tree placement, volume roll-up and ranks.
"""

from decimal import Decimal

import pytest

from app.models import TreeNode, User
from app.services.network.rank_service import RankService
from app.services.network.tree_service import TreeService
from app.utils.exceptions import TreePlacementError


async def node_of(factory, user) -> TreeNode:
    return (await factory.all(TreeNode, user_id=user.id))[0]


class TestPlacement:
    """Test breadth-first placement under the sponsor."""

    @pytest.mark.asyncio
    async def test_first_member_is_root(self, factory, session):
        user = await factory.user()

        node = await TreeService(session).place_member(user.id)
        await session.commit()

        assert node.position == "root"
        assert node.parent_id is None
        assert node.tree_path == ""

    @pytest.mark.asyncio
    async def test_spills_below_full_sponsor(self, factory, session):
        a = await factory.user()
        b = await factory.user(referrer=a)
        c = await factory.user(referrer=a)
        d = await factory.user(referrer=a)

        tree = TreeService(session)
        for member in (a, b, c, d):
            await tree.place_member(member.id)
        await session.commit()

        node_b = await node_of(factory, b)
        node_c = await node_of(factory, c)
        node_d = await node_of(factory, d)
        assert node_b.tree_path == "L"
        assert node_c.tree_path == "R"
        assert node_d.parent_id == node_b.id
        assert node_d.tree_path == "L-L"
        assert node_d.depth == 2

        root = await node_of(factory, a)
        assert root.left_leg_count == 2
        assert root.right_leg_count == 1

    @pytest.mark.asyncio
    async def test_weaker_leg_preferred(self, factory, session):
        a = await factory.user()
        b = await factory.user(referrer=a)
        c = await factory.user(referrer=a)
        d = await factory.user(referrer=a)

        tree = TreeService(session)
        for member in (a, b, c):
            await tree.place_member(member.id)
        await tree.add_personal_volume(b.id, Decimal("5000"))
        await tree.place_member(d.id)
        await session.commit()

        node_d = await node_of(factory, d)
        assert node_d.tree_path == "R-L"

    @pytest.mark.asyncio
    async def test_placing_twice_returns_existing(self, factory, session):
        user = await factory.user()
        tree = TreeService(session)

        first = await tree.place_member(user.id)
        second = await tree.place_member(user.id)

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_sponsor_without_node_rejected(self, factory, session):
        root = await factory.user()
        outsider = await factory.user()
        member = await factory.user(referrer=outsider)
        tree = TreeService(session)
        await tree.place_member(root.id)

        with pytest.raises(TreePlacementError):
            await tree.place_member(member.id)


class TestVolumes:
    """Test volume roll-up to the root."""

    @pytest.mark.asyncio
    async def test_volume_reaches_root(self, factory, session):
        a = await factory.user()
        b = await factory.user(referrer=a)
        c = await factory.user(referrer=b)

        tree = TreeService(session)
        for member in (a, b, c):
            await tree.place_member(member.id)
        await tree.add_personal_volume(c.id, Decimal("1500"))
        await tree.add_personal_volume(b.id, Decimal("500"))
        await session.commit()

        root = await node_of(factory, a)
        node_b = await node_of(factory, b)
        assert node_b.left_leg_volume == Decimal("1500")
        assert root.left_leg_volume == Decimal("2000")
        assert root.right_leg_volume == Decimal("0")

    @pytest.mark.asyncio
    async def test_member_outside_tree_ignored(self, factory, session):
        user = await factory.user()

        assert await TreeService(session).add_personal_volume(user.id, Decimal("10")) is None


class TestRanks:
    """Test bulk rank refresh."""

    @pytest.mark.asyncio
    async def test_promotes_to_silver(self, factory, session):
        leader = await factory.user(principal_balance=Decimal("1000"))
        member = await factory.user(referrer=leader)

        tree = TreeService(session)
        await tree.place_member(leader.id)
        await tree.place_member(member.id)
        await tree.add_personal_volume(member.id, Decimal("50000"))
        await session.commit()

        result = await RankService(session).update_all_user_ranks()

        assert result["processed"] == 2
        assert result["changed"] == 1
        assert (await factory.get(User, leader.id)).rank == "Silver"
        assert (await factory.get(User, member.id)).rank == "Bronze"

    @pytest.mark.asyncio
    async def test_demotes_when_stake_falls(self, factory, session):
        leader = await factory.user(rank="Gold", principal_balance=Decimal("100"))
        await TreeService(session).place_member(leader.id)
        await session.commit()

        await RankService(session).update_all_user_ranks()

        assert (await factory.get(User, leader.id)).rank == "Bronze"
