"""Unit tests for exception categories."""

import pytest
from sqlalchemy.exc import OperationalError

from app.utils.exceptions import (
    FatalBatchError,
    QualificationError,
    StakeProcessingError,
    StakeValidationError,
    TransientStoreError,
    is_per_unit,
    is_transient,
)


class TestIsTransient:
    """Test transient store failures."""

    def test_operational_error(self):
        assert is_transient(OperationalError("SELECT 1", {}, Exception("gone")))

    @pytest.mark.parametrize("exc", [ConnectionError("reset"), TimeoutError()])
    def test_network_errors(self, exc):
        assert is_transient(exc)

    def test_value_error_is_not_transient(self):
        assert not is_transient(ValueError("bad"))


class TestIsPerUnit:
    """Test per-unit failures."""

    @pytest.mark.parametrize(
        "exc",
        [
            QualificationError("unknown program"),
            StakeProcessingError("owner missing"),
            TransientStoreError("store failed"),
        ],
    )
    def test_per_unit(self, exc):
        assert is_per_unit(exc)

    @pytest.mark.parametrize(
        "exc", [FatalBatchError("down"), StakeValidationError("too small"), KeyError()]
    )
    def test_not_per_unit(self, exc):
        assert not is_per_unit(exc)
