"""
Money helpers.

Amounts are stored with 8 decimal places and always rounded down, so a
payout never exceeds what the formula allows.
"""

from decimal import ROUND_DOWN, Decimal

MONEY_QUANTUM = Decimal("0.00000001")
ZERO = Decimal("0")


def quantize_money(amount: Decimal) -> Decimal:
    """Round an amount down to 8 decimal places."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """
    Apply a percentage (e.g. 2.5 means 2.5%) and round down.

    Args:
        amount: Base amount
        percent: Percentage value

    Returns:
        amount * percent / 100, rounded down
    """
    return quantize_money(amount * percent / Decimal("100"))
