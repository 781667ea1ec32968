"""
Reconciliation service.

Detects ledger states that should never exist: a stake marked paid with no
payment record, or an income total that does not match the credits in the
ledger. Findings are stored as ReconciliationEntry rows for operators; the
service never moves money.
"""

from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import ReconciliationKind
from app.repositories.reconciliation_repository import ReconciliationRepository
from app.repositories.stake_repository import StakeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, log_operation, transaction
from app.utils.money import quantize_money


class ReconciliationService(BaseService):
    """Post-run ledger consistency checks."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.stake_repo = StakeRepository(session)
        self.user_repo = UserRepository(session)
        self.tx_repo = TransactionRepository(session)
        self.entry_repo = ReconciliationRepository(session)

    @log_operation
    @transaction
    async def run(self) -> dict[str, Any]:
        """
        Check all stakes and users and flag new inconsistencies.

        Already flagged, unresolved findings are not duplicated.

        Returns:
            Counts of checks and new entries
        """
        flagged: list[dict[str, Any]] = []

        for stake in await self.stake_repo.find_paid_without_record():
            if await self.entry_repo.is_flagged(
                ReconciliationKind.MISSING_PAYMENT_RECORD.value,
                stake_id=stake.id,
                payment_date=stake.last_roi_paid_on,
            ):
                continue
            flagged.append(
                await self._flag(
                    ReconciliationKind.MISSING_PAYMENT_RECORD,
                    stake_id=stake.id,
                    user_id=stake.user_id,
                    payment_date=stake.last_roi_paid_on,
                    details=(
                        f"Stake {stake.id} marked paid on "
                        f"{stake.last_roi_paid_on} without a payment record"
                    ),
                )
            )

        user_ids = await self.user_repo.find_active_ids()
        for user_id in user_ids:
            user = await self.user_repo.get_by_id(user_id)
            credited = await self.tx_repo.sum_income_credits(user_id)
            if quantize_money(credited) == quantize_money(user.income_total_earned):
                continue
            if await self.entry_repo.is_flagged(
                ReconciliationKind.EARNED_MISMATCH.value, user_id=user_id
            ):
                continue
            flagged.append(
                await self._flag(
                    ReconciliationKind.EARNED_MISMATCH,
                    user_id=user_id,
                    details=(
                        f"User {user_id} total earned {user.income_total_earned} "
                        f"but ledger credits sum to {credited}"
                    ),
                )
            )

        return {
            "success": True,
            "checked_users": len(user_ids),
            "flagged": len(flagged),
            "entries": flagged,
        }

    async def _flag(
        self,
        kind: ReconciliationKind,
        details: str,
        stake_id: int | None = None,
        user_id: int | None = None,
        payment_date: date | None = None,
    ) -> dict[str, Any]:
        entry = await self.entry_repo.create(
            kind=kind.value,
            stake_id=stake_id,
            user_id=user_id,
            payment_date=payment_date,
            details=details,
        )
        self.logger.warning(
            "Reconciliation mismatch flagged",
            extra={
                "kind": kind.value,
                "stake_id": stake_id,
                "user_id": user_id,
                "entry_id": entry.id,
            },
        )
        return {
            "id": entry.id,
            "kind": kind.value,
            "stake_id": stake_id,
            "user_id": user_id,
            "details": details,
        }
