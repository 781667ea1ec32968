"""
Tree node repository.

Data access layer for the binary tree.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import TreePosition
from app.models.tree_node import TreeNode
from app.repositories.base import BaseRepository


class TreeNodeRepository(BaseRepository[TreeNode]):
    """Tree node repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize tree node repository."""
        super().__init__(TreeNode, session)

    async def get_by_user(self, user_id: int) -> TreeNode | None:
        """Get a user's node."""
        return await self.get_by(user_id=user_id)

    async def get_by_user_for_update(self, user_id: int) -> TreeNode | None:
        """Get a user's node holding a row lock."""
        await self.session.flush()
        stmt = (
            select(TreeNode)
            .where(TreeNode.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_root(self) -> TreeNode | None:
        """Get the root node, if the tree has been started."""
        return await self.get_by(position=TreePosition.ROOT.value)

    async def find_active_node_ids(self) -> list[int]:
        """Get IDs of active nodes."""
        stmt = (
            select(TreeNode.id)
            .where(TreeNode.is_active.is_(True))
            .order_by(TreeNode.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_children(self, node: TreeNode) -> list[TreeNode]:
        """Get a node's children, left first."""
        children = []
        for child_id in (node.left_child_id, node.right_child_id):
            if child_id is None:
                continue
            child = await self.get_by_id(child_id)
            if child is not None:
                children.append(child)
        return children
