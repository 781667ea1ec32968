"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

from sqlalchemy.exc import DBAPIError, OperationalError, TimeoutError as PoolTimeoutError


class StakingError(Exception):
    """Base class for staking pipeline errors."""
    pass


class QualificationError(StakingError):
    """Raised when a stake's program or configuration cannot be evaluated."""
    pass


class StakeProcessingError(StakingError):
    """Raised when a single stake cannot be processed (e.g. owner missing)."""
    pass


class TransientStoreError(StakingError):
    """Raised when the data store fails during a per-unit update."""
    pass


class FatalBatchError(StakingError):
    """Raised when a batch cannot start at all (e.g. store unreachable)."""
    pass


class StakeValidationError(StakingError):
    """Raised when a new stake violates program limits."""
    pass


class TreePlacementError(StakingError):
    """Raised when a member cannot be placed in the binary tree."""
    pass


class PoolClosedError(StakingError):
    """Raised when a deposit targets a leadership pool that stopped collecting."""
    pass


# Exception categories based on handling strategy

# Transient - unit stays eligible for retry on the next run
TRANSIENT = (
    OperationalError,
    PoolTimeoutError,
    DBAPIError,
    TimeoutError,
    ConnectionError,
)

# Per-unit - logged and counted, batch continues
PER_UNIT = (
    QualificationError,
    StakeProcessingError,
    TransientStoreError,
)


def is_transient(exc: Exception) -> bool:
    """
    Check if exception is a transient store failure.

    Args:
        exc: Exception to check

    Returns:
        True if the failed unit can be retried on the next run
    """
    return isinstance(exc, TRANSIENT)


def is_per_unit(exc: Exception) -> bool:
    """
    Check if exception is an expected per-unit failure.

    Args:
        exc: Exception to check

    Returns:
        True if exception belongs to a single stake/user unit
    """
    return isinstance(exc, PER_UNIT)
