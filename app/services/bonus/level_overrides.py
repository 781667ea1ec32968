"""
Level override service.

Pays upline sponsors a percentage of a downline member's activity (daily
ROI or a new stake), walking the sponsor chain up to the configured depth.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.programs import (
    LEVEL_TWO_MIN_REFERRALS,
    ProgramConfig,
    get_override_percentage,
    get_override_requirement,
    get_program,
)
from app.config.settings import settings
from app.models.enums import OverrideActivity, TransactionType
from app.models.level_override import LevelOverride
from app.models.user import User
from app.repositories.bonus_repository import LevelOverrideRepository
from app.repositories.transaction_repository import TransactionRepository
from app.repositories.user_repository import UserRepository
from app.services.base_service import BaseService
from app.utils.money import percent_of


class LevelOverrideService(BaseService):
    """
    Level override payouts.

    Works inside the caller's transaction; sponsors are locked as they
    are credited.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.user_repo = UserRepository(session)
        self.override_repo = LevelOverrideRepository(session)
        self.tx_repo = TransactionRepository(session)

    async def sponsor_qualifies(
        self, sponsor: User, level: int, config: ProgramConfig
    ) -> bool:
        """
        Check whether a sponsor may earn overrides at a level.

        Level 1 always qualifies, level 2 needs two direct referrals and
        deeper levels need a minimum principal (and, for some programs,
        direct referrals).
        """
        if not sponsor.is_active:
            return False
        if level == 1:
            return True
        if level == 2:
            referrals = await self.user_repo.count_direct_referrals(sponsor.id)
            return referrals >= LEVEL_TWO_MIN_REFERRALS

        requirement = get_override_requirement(config, level)
        if requirement is None:
            return False

        min_principal, min_referrals = requirement
        if sponsor.principal_balance < min_principal:
            return False
        if min_referrals:
            referrals = await self.user_repo.count_direct_referrals(sponsor.id)
            return referrals >= min_referrals
        return True

    async def pay_overrides(
        self,
        source_user_id: int,
        activity_type: OverrideActivity,
        activity_amount: Decimal,
        program: str,
        day: date,
        source_payment_id: int | None = None,
    ) -> list[LevelOverride]:
        """
        Walk the sponsor chain and pay qualifying overrides.

        The walk is an explicit loop capped at override_max_depth and stops
        on a repeated user so a corrupt referral chain cannot loop.

        Args:
            source_user_id: Member whose activity generates the overrides
            activity_type: Daily ROI or deposit
            activity_amount: Amount the percentages apply to
            program: Program whose override table applies
            day: Business day of the activity
            source_payment_id: ROI payment, for daily ROI overrides

        Returns:
            Override rows created
        """
        config = get_program(program)
        source = await self.user_repo.get_by_id(source_user_id)
        if source is None or source.referrer_id is None:
            return []

        created: list[LevelOverride] = []
        visited = {source_user_id}
        sponsor_id = source.referrer_id
        level = 1

        while sponsor_id is not None and level <= settings.override_max_depth:
            if sponsor_id in visited:
                self.logger.warning(
                    "Referral cycle detected, stopping override walk",
                    extra={"source_user_id": source_user_id, "sponsor_id": sponsor_id},
                )
                break
            visited.add(sponsor_id)

            sponsor = await self.user_repo.get_for_update(sponsor_id)
            if sponsor is None:
                break

            percentage = get_override_percentage(config, level)
            if percentage > 0 and await self.sponsor_qualifies(sponsor, level, config):
                override = await self._pay(
                    sponsor,
                    source_user_id,
                    level,
                    percentage,
                    activity_type,
                    activity_amount,
                    program,
                    day,
                    source_payment_id,
                )
                if override is not None:
                    created.append(override)

            sponsor_id = sponsor.referrer_id
            level += 1

        return created

    async def _pay(
        self,
        sponsor: User,
        source_user_id: int,
        level: int,
        percentage: Decimal,
        activity_type: OverrideActivity,
        activity_amount: Decimal,
        program: str,
        day: date,
        source_payment_id: int | None,
    ) -> LevelOverride | None:
        amount = percent_of(activity_amount, percentage)
        if amount <= 0:
            return None

        reference = None
        if source_payment_id is not None:
            reference = f"OVR-{source_payment_id}-{sponsor.id}"

        await self.tx_repo.credit_income(
            sponsor,
            amount,
            TransactionType.LEVEL_OVERRIDE,
            description=(
                f"Level {level} override ({percentage}%) on "
                f"{activity_type.value} of user #{source_user_id}"
            ),
            reference=reference,
        )

        override = await self.override_repo.create(
            earner_id=sponsor.id,
            source_user_id=source_user_id,
            source_payment_id=source_payment_id,
            referral_level=level,
            override_percentage=percentage,
            activity_type=activity_type.value,
            activity_amount=activity_amount,
            override_amount=amount,
            program=program,
            override_date=day,
        )

        self.logger.debug(
            "Level override paid",
            extra={
                "earner_id": sponsor.id,
                "source_user_id": source_user_id,
                "level": level,
                "amount": str(amount),
            },
        )
        return override
