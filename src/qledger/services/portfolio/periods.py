"""Valuation calendar and input coercion helpers."""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator

from qledger.system.config import Frequency

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert numeric input to Decimal (floats go through str to avoid binary noise)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_date(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def to_datetime(value: date | datetime | str) -> datetime:
    """Normalize a date, datetime or ISO string to a datetime (dates map to midnight)."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


def period_ends(after: date, through: date, frequency: Frequency) -> Iterator[date]:
    """
    Yield valuation period boundaries d with after < d <= through.

    Args:
        after: Last boundary already computed (exclusive)
        through: Final boundary (inclusive)
        frequency: "daily" for every calendar day, "business_daily" for Mon-Fri

    Example:
        >>> list(period_ends(date(2024, 1, 5), date(2024, 1, 9), "business_daily"))
        [datetime.date(2024, 1, 8), datetime.date(2024, 1, 9)]
    """
    if frequency not in ("daily", "business_daily"):
        raise ValueError(f"Unsupported valuation frequency: {frequency}")

    day = after + timedelta(days=1)
    while day <= through:
        if frequency == "daily" or day.weekday() < 5:
            yield day
        day += timedelta(days=1)


def sign(value: Decimal) -> int:
    """Return -1, 0 or 1."""
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0
