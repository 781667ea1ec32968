"""
Unit tests for program configuration.

Tests cover:
- Program lookup
- Override tables and requirements
- Rank tables
"""

from decimal import Decimal

import pytest

from app.config.programs import (
    POOL_TIERS,
    PROGRAMS,
    RANK_REQUIREMENTS,
    ProgramType,
    RankType,
    get_override_percentage,
    get_override_requirement,
    get_program,
)
from app.utils.exceptions import QualificationError


class TestGetProgram:
    """Test program lookup."""

    @pytest.mark.parametrize("code", ["I", "II", "III", "IV"])
    def test_known_programs(self, code):
        assert get_program(code).program.value == code

    def test_accepts_enum(self):
        assert get_program(ProgramType.IV).compounding_days == 1

    @pytest.mark.parametrize("code", ["IX", "", "i", "V"])
    def test_unknown_program_raises(self, code):
        with pytest.raises(QualificationError):
            get_program(code)

    def test_program_one_rates(self):
        config = get_program("I")

        assert config.base_rate == Decimal("0.0075")
        assert config.enhanced_rate == Decimal("0.0085")
        assert config.compounding_rate == Decimal("0.0100")
        assert config.min_stake == Decimal("50")


class TestTables:
    """Test table completeness."""

    @pytest.mark.parametrize("program", list(ProgramType))
    def test_fifteen_override_levels(self, program):
        assert len(PROGRAMS[program].override_percentages) == 15

    @pytest.mark.parametrize("program", list(ProgramType))
    def test_every_rank_has_matching_rate_and_cap(self, program):
        config = PROGRAMS[program]
        assert set(config.matching_rates) == set(RankType)
        assert set(config.matching_caps) == set(RankType)

    @pytest.mark.parametrize("program", list(ProgramType))
    def test_every_tier_has_pool_share(self, program):
        assert set(PROGRAMS[program].pool_percentages) == set(POOL_TIERS)

    def test_rank_requirements_highest_first(self):
        volumes = [r.leg_volume for r in RANK_REQUIREMENTS]
        assert volumes == sorted(volumes, reverse=True)


class TestOverrides:
    """Test override lookups."""

    def test_program_one_percentages(self):
        config = get_program("I")

        assert get_override_percentage(config, 1) == Decimal("5")
        assert get_override_percentage(config, 2) == Decimal("2")
        assert get_override_percentage(config, 5) == Decimal("1")
        assert get_override_percentage(config, 8) == Decimal("0.5")
        assert get_override_percentage(config, 15) == Decimal("0.25")

    @pytest.mark.parametrize("level", [0, 16, -1])
    def test_out_of_range_level_is_zero(self, level):
        assert get_override_percentage(get_program("I"), level) == Decimal("0")

    def test_requirements_by_level(self):
        config = get_program("I")

        assert get_override_requirement(config, 1) is None
        assert get_override_requirement(config, 2) is None
        assert get_override_requirement(config, 4) == (Decimal("1000"), 0)
        assert get_override_requirement(config, 9) == (Decimal("5000"), 0)

    def test_program_four_needs_referrals(self):
        assert get_override_requirement(get_program("IV"), 3) == (Decimal("3000"), 5)
