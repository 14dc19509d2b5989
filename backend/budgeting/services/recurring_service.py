"""Due-date evaluation and advancement for recurring incomes and expenses."""

import calendar
from enum import Enum
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from budgeting.models.expense import RecurrenceFrequency
from budgeting.models.income_source import PayFrequency

DateLike = Union[date, datetime]

FALLBACK_INTERVAL = timedelta(days=7)


def to_utc_date(value: DateLike) -> date:
    """
    Truncate a date or datetime to its UTC calendar day.
    Naive datetimes are taken to be UTC already.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def is_due(now: DateLike, next_due: DateLike) -> bool:
    """
    True only when ``next_due`` falls on the same UTC day as ``now``.

    A due date that has already passed is not due: missed cycles are not caught up.
    """
    return to_utc_date(now) == to_utc_date(next_due)


def normalize_frequency(frequency: Optional[str]) -> str:
    """Lower-cased frequency value; accepts enum members and raw strings."""
    if frequency is None:
        return ""
    if isinstance(frequency, Enum):
        return frequency.value
    return str(frequency).strip().lower()


def is_valid_pay_frequency(frequency: Optional[str]) -> bool:
    return normalize_frequency(frequency) in {f.value for f in PayFrequency}


def is_valid_recurrence_frequency(frequency: Optional[str]) -> bool:
    return normalize_frequency(frequency) in {f.value for f in RecurrenceFrequency}


def add_months(start: date, months: int, day: Optional[int] = None) -> date:
    """
    Add calendar months, clamping to the end of shorter months.

    ``day`` is the day of month the schedule is anchored to; it defaults to
    ``start.day``. Passing the anchor keeps a clamped date from drifting
    (Jan 31 -> Feb 29 -> Mar 31).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day or start.day, last_day))


def calculate_next_due(due: date, frequency: Optional[str], anchor_day: Optional[int] = None) -> date:
    """
    Calculate the due date following ``due``.

    Monthly and annually keep ``anchor_day`` (else the day of ``due``) where
    the target month has it and clamp to its last day otherwise, so Jan 31
    monthly gives Feb 29 in 2024 and then Mar 31, and Feb 29 annually gives
    Feb 28 until the next leap year. Blank or unknown frequencies advance one week.
    """
    freq = normalize_frequency(frequency)
    if freq == RecurrenceFrequency.weekly.value:
        return due + timedelta(days=7)
    elif freq == RecurrenceFrequency.biweekly.value:
        return due + timedelta(days=14)
    elif freq == RecurrenceFrequency.monthly.value:
        return add_months(due, 1, anchor_day)
    elif freq == RecurrenceFrequency.annually.value:
        return add_months(due, 12, anchor_day)
    else:
        return due + FALLBACK_INTERVAL
