"""Calendar-date normalization for pricing inputs.

Every date that reaches the pricing engine is reduced to a plain
``datetime.date`` (year, month, day) before it is compared or shifted. Timestamps
keep the calendar fields they were authored with; they are never converted to
another zone first, so ``2025-06-15T23:30:00-05:00`` and
``2025-06-15T00:30:00+09:00`` are both 15 June.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BeforeValidator

from src.core.errors import InvalidDateError


_ISO_DATE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:[.,]\d+)?)?(?:Z|[+-]\d{2}(?::?\d{2})?)?)?$"
)


def to_calendar_date(value: Any) -> date:
    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if isinstance(value, str):
        match = _ISO_DATE.match(value.strip())
        if match:
            try:
                return date(int(match["year"]), int(match["month"]), int(match["day"]))
            except ValueError as exc:
                raise InvalidDateError(f"Invalid calendar date: {value!r}", value) from exc
    raise InvalidDateError(f"Unsupported date value: {value!r}", value)


def add_days(value: date, days: int) -> date:
    try:
        return date.fromordinal(value.toordinal() + days)
    except (OverflowError, ValueError) as exc:
        raise InvalidDateError(f"Date out of range: {value.isoformat()} + {days} days", value) from exc


def days_between(start: date, end: date) -> int:
    return end.toordinal() - start.toordinal()


def day_date(tour_starts_from: date, day_number: int) -> date:
    # Day 1 is the tour start date.
    return add_days(tour_starts_from, day_number - 1)


CalendarDate = Annotated[date, BeforeValidator(to_calendar_date)]
