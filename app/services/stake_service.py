"""
Stake service.

Opens new stakes. Opening a stake feeds everything downstream of a deposit:
principal wallet, tree volume, the month's leadership pool and deposit
level overrides.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.programs import get_program
from app.models.enums import OverrideActivity
from app.models.stake import Stake
from app.repositories.stake_repository import StakeRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService, transaction
from app.services.bonus.level_overrides import LevelOverrideService
from app.services.leadership.pool_distributor import accrue_pool_deposit
from app.services.network.tree_service import TreeService
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.exceptions import StakeProcessingError, StakeValidationError


class StakeService(BaseService):
    """Stake lifecycle operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.stake_repo = StakeRepository(session)
        self.user_repo = UserRepository(session)
        self.tx_repo = TransactionRepository(session)

    @transaction
    async def open_stake(
        self,
        user_id: int,
        program: str,
        amount: Decimal,
        when: datetime | None = None,
    ) -> Stake:
        """
        Open a stake and apply its side effects atomically.

        Args:
            user_id: Staking user
            program: Program code
            amount: Principal to lock
            when: Deposit moment (defaults to now)

        Returns:
            Created stake

        Raises:
            QualificationError: Unknown program
            StakeValidationError: Amount below the program minimum
            StakeProcessingError: User not found or inactive
        """
        config = get_program(program)
        when = ensure_utc(when) or utc_now()

        if amount < config.min_stake:
            raise StakeValidationError(
                f"Minimum stake for program {config.program.value} is {config.min_stake}"
            )

        user = await self.user_repo.get_for_update(user_id)
        if user is None or not user.is_active:
            raise StakeProcessingError(f"User {user_id} not found or inactive")

        stake = await self.stake_repo.create(
            user_id=user.id,
            program=config.program.value,
            amount=amount,
            base_roi_rate=config.base_rate,
            compounding_rate=config.compounding_rate,
            is_active=True,
            total_roi_earned=Decimal("0"),
            compounding_days_without_withdrawal=0,
            created_at=when,
        )

        await self.tx_repo.record_principal_deposit(
            user,
            amount,
            description=f"Stake #{stake.id} opened in program {config.program.value}",
        )
        user.current_program = config.program.value

        await TreeService(self.session).add_personal_volume(user.id, amount)
        await accrue_pool_deposit(self.session, config.program.value, amount, when)
        overrides = await LevelOverrideService(self.session).pay_overrides(
            source_user_id=user.id,
            activity_type=OverrideActivity.DEPOSIT,
            activity_amount=amount,
            program=config.program.value,
            day=when.date(),
        )

        self.logger.info(
            "Stake opened",
            extra={
                "stake_id": stake.id,
                "user_id": user.id,
                "program": config.program.value,
                "amount": str(amount),
                "overrides_paid": len(overrides),
            },
        )
        return stake
