"""
Single source of truth for staking program configuration.

Programs I-IV each carry their own ROI rates, enhanced ROI requirements,
compounding trigger and bonus tables. All other modules must import
program parameters from here.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple

from app.utils.exceptions import QualificationError


class ProgramType(str, Enum):
    """Staking programs."""

    I = "I"  # noqa: E741
    II = "II"
    III = "III"
    IV = "IV"


class RankType(str, Enum):
    """Network ranks, lowest first."""

    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    DIAMOND = "Diamond"
    RUBY = "Ruby"


# Leadership pool tiers are the ranks above Bronze
POOL_TIERS: tuple[RankType, ...] = (
    RankType.SILVER,
    RankType.GOLD,
    RankType.DIAMOND,
    RankType.RUBY,
)


class ProgramConfig(NamedTuple):
    """Configuration of one staking program."""

    program: ProgramType
    display_name: str
    min_stake: Decimal
    base_rate: Decimal  # Daily rate on principal
    enhanced_rate: Decimal  # Daily rate on principal once qualified
    compounding_rate: Decimal  # Daily rate on the income wallet balance
    enhanced_total_stake: Decimal  # Required sum of the user's active stakes
    enhanced_referral_count: int  # Required qualified direct referrals
    enhanced_referral_stake: Decimal  # Stake each referral must hold
    compounding_days: int  # Days without withdrawal before compounding
    compounding_min_income: Decimal  # Minimum income wallet balance
    override_percentages: tuple[Decimal, ...]  # Levels 1..15, in percent
    override_requirements: dict[tuple[int, int], tuple[Decimal, int]]
    matching_rates: dict[RankType, Decimal]  # Percent of paired volume
    matching_caps: dict[RankType, Decimal]  # Daily cap in USDT
    pool_percentages: dict[RankType, Decimal]  # Share of monthly deposits


def _levels(*spec: tuple[int, str]) -> tuple[Decimal, ...]:
    """Expand (count, percent) runs into a 15-level percentage tuple."""
    result: list[Decimal] = []
    for count, percent in spec:
        result.extend([Decimal(percent)] * count)
    return tuple(result)


def _ranks(*values: str) -> dict[RankType, Decimal]:
    return {rank: Decimal(value) for rank, value in zip(RankType, values)}


def _tiers(*values: str) -> dict[RankType, Decimal]:
    return {tier: Decimal(value) for tier, value in zip(POOL_TIERS, values)}


# (min_level, max_level) -> (min principal, min direct referrals)
_STANDARD_OVERRIDE_REQUIREMENTS = {
    (3, 5): (Decimal("1000"), 0),
    (6, 8): (Decimal("2000"), 0),
    (9, 15): (Decimal("5000"), 0),
}


PROGRAMS: dict[ProgramType, ProgramConfig] = {
    ProgramType.I: ProgramConfig(
        program=ProgramType.I,
        display_name="Founders' Program",
        min_stake=Decimal("50"),
        base_rate=Decimal("0.0075"),
        enhanced_rate=Decimal("0.0085"),
        compounding_rate=Decimal("0.0100"),
        enhanced_total_stake=Decimal("5000"),
        enhanced_referral_count=1,
        enhanced_referral_stake=Decimal("1000"),
        compounding_days=7,
        compounding_min_income=Decimal("50"),
        override_percentages=_levels((1, "5"), (1, "2"), (3, "1"), (3, "0.5"), (7, "0.25")),
        override_requirements=_STANDARD_OVERRIDE_REQUIREMENTS,
        matching_rates=_ranks("8", "9", "10", "11", "12"),
        matching_caps=_ranks("2100", "2500", "3000", "4000", "5000"),
        pool_percentages=_tiers("0.005", "0.01", "0.015", "0.02"),
    ),
    ProgramType.II: ProgramConfig(
        program=ProgramType.II,
        display_name="Growth Program",
        min_stake=Decimal("50"),
        base_rate=Decimal("0.0080"),
        enhanced_rate=Decimal("0.0090"),
        compounding_rate=Decimal("0.0105"),
        enhanced_total_stake=Decimal("7500"),
        enhanced_referral_count=2,
        enhanced_referral_stake=Decimal("1500"),
        compounding_days=5,
        compounding_min_income=Decimal("100"),
        override_percentages=_levels((1, "6"), (1, "3"), (3, "1.5"), (3, "1"), (7, "0.5")),
        override_requirements=_STANDARD_OVERRIDE_REQUIREMENTS,
        matching_rates=_ranks("9", "10", "11", "12", "13"),
        matching_caps=_ranks("3000", "4000", "5000", "6000", "7000"),
        pool_percentages=_tiers("0.0075", "0.0125", "0.0175", "0.0225"),
    ),
    ProgramType.III: ProgramConfig(
        program=ProgramType.III,
        display_name="Elite Program",
        min_stake=Decimal("50"),
        base_rate=Decimal("0.0090"),
        enhanced_rate=Decimal("0.0100"),
        compounding_rate=Decimal("0.0110"),
        enhanced_total_stake=Decimal("10000"),
        enhanced_referral_count=3,
        enhanced_referral_stake=Decimal("2000"),
        compounding_days=3,
        compounding_min_income=Decimal("200"),
        override_percentages=_levels((1, "7"), (1, "4"), (3, "2"), (3, "1.5"), (7, "1")),
        override_requirements={
            (3, 5): (Decimal("2000"), 3),
            (6, 8): (Decimal("4000"), 3),
            (9, 15): (Decimal("10000"), 3),
        },
        matching_rates=_ranks("10", "11", "12", "13", "14"),
        matching_caps=_ranks("5000", "6000", "7000", "8000", "9000"),
        pool_percentages=_tiers("0.01", "0.015", "0.02", "0.025"),
    ),
    ProgramType.IV: ProgramConfig(
        program=ProgramType.IV,
        display_name="Legacy Program",
        min_stake=Decimal("100"),
        base_rate=Decimal("0.0100"),
        enhanced_rate=Decimal("0.0110"),
        compounding_rate=Decimal("0.0115"),
        enhanced_total_stake=Decimal("15000"),
        enhanced_referral_count=5,
        enhanced_referral_stake=Decimal("3000"),
        compounding_days=1,
        compounding_min_income=Decimal("500"),
        override_percentages=_levels((1, "8"), (1, "5"), (3, "3"), (3, "2"), (7, "1")),
        override_requirements={
            (3, 5): (Decimal("3000"), 5),
            (6, 8): (Decimal("5000"), 5),
            (9, 15): (Decimal("15000"), 5),
        },
        matching_rates=_ranks("12", "13", "14", "15", "16"),
        matching_caps=_ranks("5000", "6000", "8000", "10000", "12000"),
        pool_percentages=_tiers("0.015", "0.02", "0.025", "0.03"),
    ),
}


class RankRequirement(NamedTuple):
    """Thresholds for achieving a rank."""

    rank: RankType
    leg_volume: Decimal  # left + right leg volume
    personal_stake: Decimal  # principal wallet balance


# Highest rank first
RANK_REQUIREMENTS: tuple[RankRequirement, ...] = (
    RankRequirement(RankType.RUBY, Decimal("1000000"), Decimal("10000")),
    RankRequirement(RankType.DIAMOND, Decimal("500000"), Decimal("5000")),
    RankRequirement(RankType.GOLD, Decimal("150000"), Decimal("2500")),
    RankRequirement(RankType.SILVER, Decimal("50000"), Decimal("1000")),
    RankRequirement(RankType.BRONZE, Decimal("5000"), Decimal("500")),
)

# Minimum principal a member must keep to share in a leadership pool tier
POOL_TIER_MIN_STAKE: dict[RankType, Decimal] = {
    RankType.SILVER: Decimal("1000"),
    RankType.GOLD: Decimal("2500"),
    RankType.DIAMOND: Decimal("5000"),
    RankType.RUBY: Decimal("10000"),
}

# Level 2 overrides need this many direct referrals
LEVEL_TWO_MIN_REFERRALS = 2


def get_program(code: str | ProgramType) -> ProgramConfig:
    """
    Get program configuration by code.

    Args:
        code: Program code ("I".."IV")

    Returns:
        Program configuration

    Raises:
        QualificationError: If the program code is unknown
    """
    try:
        program = ProgramType(code)
    except ValueError as exc:
        raise QualificationError(f"Unknown program: {code!r}") from exc
    return PROGRAMS[program]


def get_override_percentage(config: ProgramConfig, level: int) -> Decimal:
    """Override percentage for a sponsor-chain level (0 outside 1..15)."""
    if level < 1 or level > len(config.override_percentages):
        return Decimal("0")
    return config.override_percentages[level - 1]


def get_override_requirement(
    config: ProgramConfig, level: int
) -> tuple[Decimal, int] | None:
    """Principal and referral requirement for levels 3..15."""
    for (low, high), requirement in config.override_requirements.items():
        if low <= level <= high:
            return requirement
    return None
