"""
Leadership pool distributor.

Each program's pool accrues a share of every stake opened in a month. After
the month closes the pool is split per rank tier among qualified members,
exactly once.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.programs import POOL_TIER_MIN_STAKE, POOL_TIERS, get_program
from app.config.settings import settings
from app.models.enums import PoolStatus, TransactionType
from app.models.leadership_pool import LeadershipPool
from app.repositories.leadership_pool_repository import LeadershipPoolRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BatchService, log_operation
from app.utils.datetime_utils import (
    month_start,
    next_month_start,
    parse_month,
    previous_month_start,
    start_of_utc_day,
    utc_now,
)
from app.utils.exceptions import PoolClosedError
from app.utils.money import ZERO, quantize_money


def normalize_month(month: date | str) -> date:
    """Accept a date inside the month or a YYYY-MM string."""
    if isinstance(month, str):
        return parse_month(month)
    return month_start(month)


def tier_share(total: Decimal, members: int) -> Decimal:
    """Per-member share of a tier, 0 when nobody qualifies."""
    if members <= 0:
        return ZERO
    return quantize_money(total / members)


async def accrue_pool_deposit(
    session: AsyncSession,
    program: str,
    amount: Decimal,
    when: date | datetime,
) -> LeadershipPool:
    """
    Add a deposit to the month's pool inside the caller's transaction.

    Tier totals are recomputed from the new deposit total.

    Raises:
        PoolClosedError: If the month's pool is no longer collecting
    """
    config = get_program(program)
    repo = LeadershipPoolRepository(session)

    pool = await repo.get_or_create(config.program.value, month_start(when))
    if pool.status != PoolStatus.COLLECTING.value:
        raise PoolClosedError(
            f"Leadership pool {pool.program} {pool.month:%Y-%m} is {pool.status}"
        )
    pool.total_deposits = pool.total_deposits + amount

    tiers = await repo.get_tiers(pool.id)
    for tier in POOL_TIERS:
        percentage = config.pool_percentages[tier]
        total = quantize_money(pool.total_deposits * percentage)
        row = tiers.get(tier.value)
        if row is None:
            await repo.add_tier(
                pool_id=pool.id,
                tier=tier.value,
                percentage=percentage,
                total_amount=total,
            )
        else:
            row.total_amount = total

    await session.flush()
    return pool


class LeadershipPoolDistributor(BatchService):
    """Monthly leadership pool accrual, preview and distribution."""

    async def add_deposit(
        self, program: str, amount: Decimal, when: date | datetime | None = None
    ) -> dict[str, Any]:
        """
        Accrue a deposit into its month's pool in a transaction of its own.

        Returns:
            Pool program, month and new deposit total
        """
        when = when or utc_now()
        async with self.unit_of_work() as session:
            pool = await accrue_pool_deposit(session, program, amount, when)
            return {
                "program": pool.program,
                "month": pool.month.isoformat(),
                "total_deposits": pool.total_deposits,
            }

    async def _compute(
        self, session: AsyncSession, pool: LeadershipPool
    ) -> dict[str, Any]:
        """Tier totals, qualified members and shares for a pool."""
        config = get_program(pool.program)
        user_repo = UserRepository(session)
        joined_before = start_of_utc_day(next_month_start(pool.month))

        tiers: dict[str, Any] = {}
        total_payout = ZERO
        for tier in POOL_TIERS:
            percentage = config.pool_percentages[tier]
            total = quantize_money(pool.total_deposits * percentage)
            members = await user_repo.find_pool_members(
                rank=tier.value,
                joined_before=joined_before,
                min_principal=POOL_TIER_MIN_STAKE[tier],
            )
            share = tier_share(total, len(members))
            tiers[tier.value] = {
                "percentage": percentage,
                "total_amount": total,
                "qualified_members": len(members),
                "member_ids": [member.id for member in members],
                "per_member_share": share,
            }
            total_payout += share * len(members)

        return {
            "program": pool.program,
            "month": pool.month.isoformat(),
            "status": pool.status,
            "total_deposits": pool.total_deposits,
            "tiers": tiers,
            "total_payout": total_payout,
        }

    async def calculate_distribution(
        self, program: str, month: date | str
    ) -> dict[str, Any]:
        """
        Preview a pool's distribution without touching any wallet.

        Args:
            program: Program code
            month: Any day of the month, or YYYY-MM

        Returns:
            Preview; pool_found is False when the month has no pool
        """
        program = get_program(program).program.value
        month = normalize_month(month)

        async with self.session_maker() as session:
            pool = await LeadershipPoolRepository(session).find_pool(program, month)
            if pool is None:
                return {
                    "success": True,
                    "pool_found": False,
                    "program": program,
                    "month": month.isoformat(),
                    "total_deposits": ZERO,
                    "tiers": {},
                    "total_payout": ZERO,
                }
            preview = await self._compute(session, pool)

        return {"success": True, "pool_found": True, **preview}

    @log_operation
    async def distribute(
        self, program: str, month: date | str, now: datetime | None = None
    ) -> dict[str, Any]:
        """
        Pay out a closed pool exactly once.

        A pool can only be distributed after its month has ended; it is
        first moved to ready, which stops further deposits. The flip from
        ready to distributed is an atomic check-and-set; only the caller
        that performs it credits members, in the same transaction. Any
        later call is a no-op reporting already_distributed.

        Args:
            program: Program code
            month: Any day of the month, or YYYY-MM
            now: Reference time for the month-closed check (defaults to now)

        Returns:
            distributed flag, plus payout details for the winning call
        """
        program = get_program(program).program.value
        month = normalize_month(month)

        async with self.unit_of_work() as session:
            repo = LeadershipPoolRepository(session)
            pool = await repo.find_pool_for_update(program, month)
            if pool is None:
                self.logger.warning(
                    "No leadership pool to distribute",
                    extra={"program": program, "month": month.isoformat()},
                )
                return {
                    "success": False,
                    "distributed": False,
                    "program": program,
                    "month": month.isoformat(),
                    "error": "Pool not found",
                }

            if month >= month_start(now or utc_now()):
                self.logger.warning(
                    "Leadership pool month still open",
                    extra={"program": program, "month": month.isoformat()},
                )
                return {
                    "success": False,
                    "distributed": False,
                    "program": program,
                    "month": month.isoformat(),
                    "status": pool.status,
                    "error": "Pool not ready for distribution",
                }

            await repo.mark_ready(pool.id)
            if not await repo.mark_distributed(pool.id):
                self.logger.info(
                    "Leadership pool already distributed",
                    extra={"program": program, "month": month.isoformat()},
                )
                return {
                    "success": True,
                    "distributed": True,
                    "already_distributed": True,
                    "program": program,
                    "month": month.isoformat(),
                }

            preview = await self._compute(session, pool)
            credited = await self._credit_members(session, pool, preview)

        self.logger.info(
            "Leadership pool distributed",
            extra={
                "program": program,
                "month": month.isoformat(),
                "members_credited": credited,
                "total_payout": str(preview["total_payout"]),
            },
        )
        return {
            "success": True,
            "distributed": True,
            "already_distributed": False,
            "members_credited": credited,
            **preview,
            "status": "distributed",
        }

    async def _credit_members(
        self, session: AsyncSession, pool: LeadershipPool, preview: dict[str, Any]
    ) -> int:
        """Credit every qualified member and persist tier statistics."""
        repo = LeadershipPoolRepository(session)
        user_repo = UserRepository(session)
        tx_repo = TransactionRepository(session)
        tier_rows = await repo.get_tiers(pool.id)

        credited = 0
        for tier_name, tier in preview["tiers"].items():
            share = tier["per_member_share"]
            if share > 0:
                for member_id in tier["member_ids"]:
                    member = await user_repo.get_for_update(member_id)
                    await tx_repo.credit_income(
                        member,
                        share,
                        TransactionType.LEADERSHIP_POOL,
                        description=(
                            f"Leadership pool {pool.program} "
                            f"{pool.month:%Y-%m} ({tier_name} tier)"
                        ),
                        reference=f"POOL-{pool.id}-{tier_name}-{member_id}",
                    )
                    credited += 1

            row = tier_rows.get(tier_name)
            if row is None:
                await repo.add_tier(
                    pool_id=pool.id,
                    tier=tier_name,
                    percentage=tier["percentage"],
                    total_amount=tier["total_amount"],
                    qualified_members=tier["qualified_members"],
                    per_member_share=share,
                )
            else:
                row.total_amount = tier["total_amount"]
                row.qualified_members = tier["qualified_members"]
                row.per_member_share = share

        return credited

    async def distribute_previous_month(
        self, now: datetime | None = None
    ) -> dict[str, Any]:
        """
        Distribute last month's pool of every configured program.

        A failure in one program does not stop the others.
        """
        month = previous_month_start(now or utc_now())
        results: dict[str, Any] = {}

        for program in settings.get_pool_programs():
            try:
                results[program] = await self.distribute(program, month, now)
            except Exception as e:
                self.logger.exception(
                    f"Leadership pool distribution failed for program {program}",
                    extra={"program": program, "month": month.isoformat()},
                )
                results[program] = {
                    "success": False,
                    "distributed": False,
                    "error": str(e),
                }

        return {"month": month.isoformat(), "results": results}
