"""
Stake qualification engine.

Decides, for one stake on one UTC day, whether ROI is due, which regime
applies and how much is paid. The decision itself is a pure function of a
stake snapshot; only enhanced ROI qualification needs the database.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.programs import ProgramConfig, get_program
from app.models.stake import Stake
from app.models.user import User
from app.repositories.stake_repository import StakeRepository
from app.services.base_service import BaseService
from app.utils.datetime_utils import ensure_utc
from app.utils.exceptions import QualificationError
from app.utils.money import ZERO, quantize_money


class RoiRegime(str, Enum):
    """Interest regime, highest precedence first."""

    COMPOUNDING = "compounding"
    ENHANCED = "enhanced_roi"
    BASE = "base_roi"


@dataclass(frozen=True)
class StakeSnapshot:
    """Immutable view of the stake and owner fields the decision reads."""

    stake_id: int
    user_id: int
    program: str
    principal: Decimal
    base_rate: Decimal
    compounding_rate: Decimal
    is_active: bool
    last_roi_paid_on: date | None
    compounding_active: bool
    compounding_days: int
    compounding_started_at: datetime | None
    income_balance: Decimal
    income_last_withdrawal: datetime | None

    @classmethod
    def from_models(cls, stake: Stake, user: User) -> "StakeSnapshot":
        """Build a snapshot from loaded rows."""
        return cls(
            stake_id=stake.id,
            user_id=user.id,
            program=stake.program,
            principal=stake.amount,
            base_rate=stake.base_roi_rate,
            compounding_rate=stake.compounding_rate,
            is_active=stake.is_active,
            last_roi_paid_on=stake.last_roi_paid_on,
            compounding_active=stake.compounding_active,
            compounding_days=stake.compounding_days_without_withdrawal,
            compounding_started_at=ensure_utc(stake.compounding_started_at),
            income_balance=user.income_balance,
            income_last_withdrawal=ensure_utc(user.income_last_withdrawal),
        )


@dataclass(frozen=True)
class EnhancedQualification:
    """Result of a fresh enhanced ROI check."""

    qualified: bool
    total_stake: Decimal = ZERO
    qualified_referrals: int = 0
    required_total: Decimal = ZERO
    required_referrals: int = 0

    @classmethod
    def not_qualified(cls) -> "EnhancedQualification":
        return cls(qualified=False)


@dataclass(frozen=True)
class RoiDecision:
    """Tagged outcome of the qualification engine."""

    due: bool
    reason: str
    regime: RoiRegime | None = None
    rate: Decimal = ZERO
    basis: Decimal = ZERO
    amount: Decimal = ZERO
    compounding_day: int = 0
    compounding_broken: bool = False

    @classmethod
    def skip(cls, reason: str, compounding_broken: bool = False) -> "RoiDecision":
        return cls(due=False, reason=reason, compounding_broken=compounding_broken)


def is_compounding_broken(snapshot: StakeSnapshot) -> bool:
    """
    Check whether the owner withdrew from Income after compounding started.

    Args:
        snapshot: Stake snapshot

    Returns:
        True if an active compounding session must end
    """
    if not snapshot.compounding_active:
        return False
    if snapshot.income_last_withdrawal is None:
        return False
    if snapshot.compounding_started_at is None:
        return True
    return snapshot.income_last_withdrawal > snapshot.compounding_started_at


def decide_roi(
    snapshot: StakeSnapshot,
    today: date,
    qualification: EnhancedQualification,
) -> RoiDecision:
    """
    Decide today's ROI for a stake.

    Precedence is compounding, then enhanced, then base. Compounding pays on
    the whole income wallet balance; enhanced and base pay on principal.

    Args:
        snapshot: Stake and owner state
        today: UTC business day
        qualification: Fresh enhanced ROI qualification of the owner

    Returns:
        Decision; due is False when nothing should be paid

    Raises:
        QualificationError: Unknown program or malformed stake
    """
    config = get_program(snapshot.program)

    if snapshot.principal is None or snapshot.principal <= 0:
        raise QualificationError(
            f"Stake {snapshot.stake_id} has non-positive principal"
        )

    if not snapshot.is_active:
        return RoiDecision.skip("inactive")

    if snapshot.last_roi_paid_on is not None and snapshot.last_roi_paid_on >= today:
        return RoiDecision.skip("already_paid")

    broken = is_compounding_broken(snapshot)

    if snapshot.compounding_active and not broken:
        regime = RoiRegime.COMPOUNDING
        rate = snapshot.compounding_rate or config.compounding_rate
        basis = snapshot.income_balance
    elif qualification.qualified:
        regime = RoiRegime.ENHANCED
        rate = config.enhanced_rate
        basis = snapshot.principal
    else:
        regime = RoiRegime.BASE
        rate = snapshot.base_rate or config.base_rate
        basis = snapshot.principal

    amount = quantize_money(rate * basis)
    if amount <= 0:
        return RoiDecision.skip("zero_amount", compounding_broken=broken)

    return RoiDecision(
        due=True,
        reason="due",
        regime=regime,
        rate=rate,
        basis=basis,
        amount=amount,
        compounding_day=(
            snapshot.compounding_days if regime is RoiRegime.COMPOUNDING else 0
        ),
        compounding_broken=broken,
    )


class QualificationEngine(BaseService):
    """Evaluates enhanced ROI qualification against live data."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.stake_repo = StakeRepository(session)

    async def evaluate_enhanced(
        self, user_id: int, config: ProgramConfig
    ) -> EnhancedQualification:
        """
        Recompute enhanced ROI qualification for a user.

        Requires the sum of the user's active stakes to reach the program
        threshold AND enough direct referrals that each hold the per-referral
        stake.

        Args:
            user_id: Stake owner
            config: Program of the stake being paid

        Returns:
            Fresh qualification
        """
        total_stake = await self.stake_repo.get_active_total(user_id)
        qualified_referrals = await self.stake_repo.count_referrals_with_stake(
            user_id, config.enhanced_referral_stake
        )

        return EnhancedQualification(
            qualified=(
                total_stake >= config.enhanced_total_stake
                and qualified_referrals >= config.enhanced_referral_count
            ),
            total_stake=total_stake,
            qualified_referrals=qualified_referrals,
            required_total=config.enhanced_total_stake,
            required_referrals=config.enhanced_referral_count,
        )

    async def decide(
        self, stake: Stake, user: User, today: date
    ) -> tuple[RoiDecision, EnhancedQualification | None]:
        """
        Evaluate qualification and decide today's ROI for loaded rows.

        Returns:
            Decision and the fresh qualification (None when the stake is
            not payable today and nothing was evaluated)

        Raises:
            QualificationError: Unknown program or malformed stake
        """
        config = get_program(stake.program)
        snapshot = StakeSnapshot.from_models(stake, user)

        qualification = None
        if snapshot.is_active and (
            snapshot.last_roi_paid_on is None or snapshot.last_roi_paid_on < today
        ):
            qualification = await self.evaluate_enhanced(user.id, config)

        decision = decide_roi(
            snapshot, today, qualification or EnhancedQualification.not_qualified()
        )

        self.logger.debug(
            "ROI decision",
            extra={
                "stake_id": stake.id,
                "due": decision.due,
                "reason": decision.reason,
                "regime": decision.regime.value if decision.regime else None,
                "amount": str(decision.amount),
            },
        )
        return decision, qualification
