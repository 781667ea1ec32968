"""
Rank service.

Ranks follow leg volume and the member's own principal.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.programs import RANK_REQUIREMENTS, RankType
from app.models.user import User
from app.repositories.tree_node_repository import TreeNodeRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, log_operation, transaction


def rank_for(leg_volume: Decimal, personal_stake: Decimal) -> RankType:
    """
    Highest rank whose volume and stake thresholds are both met.

    Members below every threshold stay Bronze.
    """
    for requirement in RANK_REQUIREMENTS:
        if (
            leg_volume >= requirement.leg_volume
            and personal_stake >= requirement.personal_stake
        ):
            return requirement.rank
    return RankType.BRONZE


class RankService(BaseService):
    """Rank calculation and bulk refresh."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.node_repo = TreeNodeRepository(session)

    async def calculate_user_rank(self, user: User) -> RankType:
        """Rank a user from their tree node and principal balance."""
        node = await self.node_repo.get_by_user(user.id)
        if node is None:
            return RankType.BRONZE
        return rank_for(
            node.left_leg_volume + node.right_leg_volume,
            user.principal_balance,
        )

    @log_operation
    @transaction
    async def update_all_user_ranks(self) -> dict[str, Any]:
        """
        Recalculate the rank of every active user.

        Returns:
            Number of users checked and rank changes applied
        """
        changed = 0
        user_ids = await self.user_repo.find_active_ids()

        for user_id in user_ids:
            user = await self.user_repo.get_for_update(user_id)
            if user is None:
                continue

            new_rank = await self.calculate_user_rank(user)
            if user.rank != new_rank.value:
                self.logger.info(
                    "Rank changed",
                    extra={
                        "user_id": user.id,
                        "old_rank": user.rank,
                        "new_rank": new_rank.value,
                    },
                )
                user.rank = new_rank.value
                changed += 1

        return {"success": True, "processed": len(user_ids), "changed": changed}
