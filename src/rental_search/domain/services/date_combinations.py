"""Enumeration of pickup/return date pairs under a minimum trip length."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from ..models import DateCombination

DATE_FORMAT = "%d/%m/%Y"

_ONE_DAY = timedelta(days=1)


class ParseError(ValueError):
    """Raised when a date string is not in DD/MM/YYYY form."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid date {value!r}, expected DD/MM/YYYY")


def parse_date(value: str | date) -> date:
    """Parse a DD/MM/YYYY string; ``date`` objects pass through."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ParseError(value)
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ParseError(value) from None


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def _day_range(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += _ONE_DAY


def generate_date_combinations(
    pickup_start: str | date,
    pickup_end: str | date,
    return_start: str | date,
    return_end: str | date,
    min_days: int,
) -> list[DateCombination]:
    """
    Enumerate every valid (pickup, return) pair, pickup outer, both ranges inclusive.

    Inverted or empty ranges yield an empty list.

    Raises:
        ParseError: If one of the bounds is not a valid DD/MM/YYYY date
    """
    first_pickup = parse_date(pickup_start)
    last_pickup = parse_date(pickup_end)
    first_return = parse_date(return_start)
    last_return = parse_date(return_end)

    combinations: list[DateCombination] = []
    for pickup in _day_range(first_pickup, last_pickup):
        for return_date in _day_range(first_return, last_return):
            if return_date <= pickup:
                continue
            days = (return_date - pickup).days
            if days < min_days:
                continue
            combinations.append(
                DateCombination(pickup_date=pickup, return_date=return_date, days=days)
            )
    return combinations
