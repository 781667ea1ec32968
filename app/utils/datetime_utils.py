"""
Datetime utilities.

Provides timezone-aware datetime functions. All business days are UTC days.
"""

from datetime import UTC, date, datetime, time


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def utc_today() -> date:
    """Current UTC calendar date."""
    return utc_now().date()


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Attach UTC to naive datetimes, convert aware ones to UTC.

    Some drivers return naive values for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def start_of_utc_day(day: date) -> datetime:
    """Midnight UTC at the start of the given day."""
    return datetime.combine(day, time.min, tzinfo=UTC)


def month_start(value: date | datetime) -> date:
    """First day of the month containing value."""
    return date(value.year, value.month, 1)


def previous_month_start(value: date | datetime) -> date:
    """First day of the month before the one containing value."""
    if value.month == 1:
        return date(value.year - 1, 12, 1)
    return date(value.year, value.month - 1, 1)


def parse_month(value: str) -> date:
    """
    Parse YYYY-MM into the first day of that month.

    Raises:
        ValueError: If value is not a valid YYYY-MM string
    """
    parsed = datetime.strptime(value, "%Y-%m")
    return date(parsed.year, parsed.month, 1)


def next_month_start(value: date | datetime) -> date:
    """First day of the month after the one containing value."""
    if value.month == 12:
        return date(value.year + 1, 1, 1)
    return date(value.year, value.month + 1, 1)
