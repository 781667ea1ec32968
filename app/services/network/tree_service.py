"""
Binary tree service.

Places new members in the binary tree and keeps leg volumes current.
"""

from collections import deque
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TreePosition
from app.models.tree_node import TreeNode
from app.repositories.tree_node_repository import TreeNodeRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.exceptions import TreePlacementError

PATH_SEGMENTS = {TreePosition.LEFT: "L", TreePosition.RIGHT: "R"}


class TreeService(BaseService):
    """
    Binary tree placement and volume roll-up.

    Works inside the caller's transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.node_repo = TreeNodeRepository(session)
        self.user_repo = UserRepository(session)

    async def place_member(
        self, user_id: int, sponsor_id: int | None = None
    ) -> TreeNode:
        """
        Give a user a node in the tree.

        The first member becomes the root. Others take a free slot of
        their sponsor, or spill breadth-first into the sponsor's weaker leg.

        Args:
            user_id: Member to place
            sponsor_id: Direct sponsor (defaults to the user's referrer,
                then to the root)

        Returns:
            The member's node (existing one if already placed)

        Raises:
            TreePlacementError: If the sponsor has no node
        """
        existing = await self.node_repo.get_by_user(user_id)
        if existing is not None:
            return existing

        if sponsor_id is None:
            user = await self.user_repo.get_by_id(user_id)
            sponsor_id = user.referrer_id if user else None

        root = await self.node_repo.get_root()
        if root is None:
            node = await self.node_repo.create(
                user_id=user_id,
                sponsor_id=sponsor_id,
                position=TreePosition.ROOT.value,
                tree_path="",
                depth=0,
            )
            self.logger.info("Tree root created", extra={"user_id": user_id})
            return node

        if sponsor_id is None:
            start = root
        else:
            start = await self.node_repo.get_by_user(sponsor_id)
            if start is None:
                raise TreePlacementError(
                    f"Sponsor {sponsor_id} has no tree node"
                )

        parent, position = await self._find_slot(start)
        segment = PATH_SEGMENTS[position]
        node = await self.node_repo.create(
            user_id=user_id,
            parent_id=parent.id,
            sponsor_id=sponsor_id,
            position=position.value,
            tree_path=f"{parent.tree_path}-{segment}" if parent.tree_path else segment,
            depth=parent.depth + 1,
        )

        if position is TreePosition.LEFT:
            parent.left_child_id = node.id
        else:
            parent.right_child_id = node.id

        await self.rollup(parent.id)

        self.logger.info(
            "Member placed in tree",
            extra={
                "user_id": user_id,
                "sponsor_id": sponsor_id,
                "parent_node_id": parent.id,
                "position": position.value,
                "tree_path": node.tree_path,
            },
        )
        return node

    async def _find_slot(self, start: TreeNode) -> tuple[TreeNode, TreePosition]:
        """
        Find the first free child slot for a new member.

        The sponsor's own slots fill left then right. Once both are taken
        the member spills into the sponsor's weaker leg, breadth-first.
        """
        for position in (TreePosition.LEFT, TreePosition.RIGHT):
            if self._child_id(start, position) is None:
                return start, position

        weaker = (
            TreePosition.LEFT
            if start.left_leg_volume <= start.right_leg_volume
            else TreePosition.RIGHT
        )
        first = await self.node_repo.get_by_id(self._child_id(start, weaker))
        if first is None:
            raise TreePlacementError(f"Tree node {start.id} has a dangling child")

        queue = deque([first])
        seen: set[int] = {start.id}
        while queue:
            node = queue.popleft()
            if node.id in seen:
                continue
            seen.add(node.id)

            for position in (TreePosition.LEFT, TreePosition.RIGHT):
                if self._child_id(node, position) is None:
                    return node, position

            queue.extend(await self.node_repo.find_children(node))

        raise TreePlacementError("No free position found in the binary tree")

    @staticmethod
    def _child_id(node: TreeNode, position: TreePosition) -> int | None:
        if position is TreePosition.LEFT:
            return node.left_child_id
        return node.right_child_id

    async def add_personal_volume(self, user_id: int, amount: Decimal) -> TreeNode | None:
        """
        Add stake volume to a member and roll it up to the root.

        Args:
            user_id: Member who staked
            amount: Volume to add

        Returns:
            Updated node, or None when the member is not in the tree
        """
        node = await self.node_repo.get_by_user_for_update(user_id)
        if node is None:
            self.logger.debug(
                "Volume not rolled up, member has no tree node",
                extra={"user_id": user_id},
            )
            return None

        node.personal_volume = node.personal_volume + amount
        if node.parent_id is not None:
            await self.rollup(node.parent_id)
        return node

    async def rollup(self, node_id: int) -> int:
        """
        Recompute leg volumes and counts from a node up to the root.

        Iterative walk; leg volume is the child's personal volume plus both
        of its legs.

        Returns:
            Number of nodes updated
        """
        updated = 0
        visited: set[int] = set()
        current_id: int | None = node_id

        while current_id is not None and current_id not in visited:
            visited.add(current_id)
            node = await self.node_repo.get_for_update(current_id)
            if node is None:
                break

            node.left_leg_volume, node.left_leg_count = await self._leg_totals(
                node.left_child_id
            )
            node.right_leg_volume, node.right_leg_count = await self._leg_totals(
                node.right_child_id
            )
            updated += 1
            current_id = node.parent_id

        await self.session.flush()
        return updated

    async def _leg_totals(self, child_id: int | None) -> tuple[Decimal, int]:
        if child_id is None:
            return Decimal("0"), 0
        child = await self.node_repo.get_by_id(child_id)
        if child is None:
            return Decimal("0"), 0
        volume = child.personal_volume + child.left_leg_volume + child.right_leg_volume
        count = 1 + child.left_leg_count + child.right_leg_count
        return volume, count
