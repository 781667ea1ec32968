"""
Matching bonus engine.

Runs once at the end of the daily cycle, after all ROI and compounding
changes of the day:

1. Level overrides on today's ROI payments that have none yet.
2. Binary matching bonus on each node's newly paired leg volume.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.programs import RankType, get_program
from app.models.enums import OverrideActivity, TransactionType
from app.repositories.bonus_repository import MatchingBonusRepository
from app.repositories.roi_payment_repository import RoiPaymentRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.tree_node_repository import TreeNodeRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BatchService, log_operation
from app.services.bonus.level_overrides import LevelOverrideService
from app.utils.datetime_utils import utc_today
from app.utils.money import ZERO, percent_of


class MatchingBonusEngine(BatchService):
    """Daily override and binary matching payouts."""

    @log_operation
    async def process_daily_matching_bonuses(
        self, today: date | None = None
    ) -> dict[str, Any]:
        """
        Pay today's level overrides and matching bonuses.

        Safe to re-run: payments that already have overrides and users
        that already received today's matching bonus are skipped.

        Args:
            today: UTC business day

        Returns:
            paid_count and total_amount over both parts, with the
            per-part breakdown
        """
        today = today or utc_today()

        overrides = await self.process_roi_overrides(today)
        matching = await self.process_binary_matching(today)

        summary = {
            "success": True,
            "paid_count": overrides["count"] + matching["count"],
            "total_amount": overrides["amount"] + matching["amount"],
            "override_count": overrides["count"],
            "override_amount": overrides["amount"],
            "matching_count": matching["count"],
            "matching_amount": matching["amount"],
            "error_count": overrides["errors"] + matching["errors"],
        }
        self.logger.info(
            "Daily bonuses processed",
            extra={
                "day": today.isoformat(),
                "paid_count": summary["paid_count"],
                "total_amount": str(summary["total_amount"]),
                "error_count": summary["error_count"],
            },
        )
        return summary

    async def process_roi_overrides(self, today: date) -> dict[str, Any]:
        """Pay level overrides for ROI payments of the day."""
        async with self.session_maker() as session:
            payments = await RoiPaymentRepository(session).find_without_overrides(today)
            payment_ids = [payment.id for payment in payments]

        count, amount, errors = 0, ZERO, 0
        for payment_id in payment_ids:
            try:
                async with self.unit_of_work() as session:
                    payment = await RoiPaymentRepository(session).get_by_id(payment_id)
                    created = await LevelOverrideService(session).pay_overrides(
                        source_user_id=payment.user_id,
                        activity_type=OverrideActivity.DAILY_ROI,
                        activity_amount=payment.amount,
                        program=payment.program,
                        day=today,
                        source_payment_id=payment.id,
                    )
            except Exception as e:
                errors += 1
                self.logger.error(
                    f"Override processing failed for payment {payment_id}",
                    extra={"payment_id": payment_id, "error": str(e)},
                )
                continue

            count += len(created)
            amount += sum((o.override_amount for o in created), ZERO)

        return {"count": count, "amount": amount, "errors": errors}

    async def process_binary_matching(self, today: date) -> dict[str, Any]:
        """Pay binary matching bonuses for the day."""
        async with self.session_maker() as session:
            node_ids = await TreeNodeRepository(session).find_active_node_ids()

        count, amount, errors = 0, ZERO, 0
        for node_id in node_ids:
            try:
                async with self.unit_of_work() as session:
                    paid = await self._match_node(session, node_id, today)
            except Exception as e:
                errors += 1
                self.logger.error(
                    f"Matching bonus failed for node {node_id}",
                    extra={"node_id": node_id, "error": str(e)},
                )
                continue

            if paid > 0:
                count += 1
                amount += paid

        return {"count": count, "amount": amount, "errors": errors}

    async def _match_node(
        self, session: AsyncSession, node_id: int, today: date
    ) -> Decimal:
        """
        Pair a node's unmatched leg volume and pay the capped bonus.

        Returns:
            Amount paid (0 when nothing was paid)
        """
        node = await TreeNodeRepository(session).get_for_update(node_id)
        if node is None or not node.is_active:
            return ZERO

        bonus_repo = MatchingBonusRepository(session)
        if await bonus_repo.exists_for_day(node.user_id, today):
            return ZERO

        unmatched_left = node.left_leg_volume - node.matched_volume
        unmatched_right = node.right_leg_volume - node.matched_volume
        pair_volume = min(unmatched_left, unmatched_right)
        if pair_volume <= 0:
            return ZERO

        user = await UserRepository(session).get_for_update(node.user_id)
        if user is None or not user.is_active:
            return ZERO

        config = get_program(user.current_program)
        rank = RankType(user.rank)
        rate = config.matching_rates[rank]
        cap = config.matching_caps[rank]
        bonus = min(percent_of(pair_volume, rate), cap)

        await bonus_repo.create(
            user_id=user.id,
            bonus_date=today,
            left_leg_volume=node.left_leg_volume,
            right_leg_volume=node.right_leg_volume,
            matched_volume=pair_volume,
            user_rank=rank.value,
            program=config.program.value,
            matching_rate=rate,
            daily_cap=cap,
            bonus_amount=bonus,
        )
        node.matched_volume = node.matched_volume + pair_volume

        if bonus > 0:
            await TransactionRepository(session).credit_income(
                user,
                bonus,
                TransactionType.MATCHING_BONUS,
                description=(
                    f"Matching bonus {rate}% on {pair_volume} paired volume "
                    f"({rank.value})"
                ),
                reference=f"MATCH-{user.id}-{today.isoformat()}",
            )

        self.logger.debug(
            "Matching bonus paid",
            extra={
                "user_id": user.id,
                "pair_volume": str(pair_volume),
                "bonus": str(bonus),
                "capped": bonus == cap,
            },
        )
        return bonus
