"""Helper functions for due point and day-count calculations."""

import math
from datetime import date, datetime, time
from dateutil.relativedelta import relativedelta
from typing import Union

Instant = Union[date, datetime]


def calc_due_mileage(last_mileage: int, interval_km: int) -> int:
    """Calculate next due mileage: last reading + interval."""
    return last_mileage + interval_km


def calc_due_date(last_date: date, interval_months: int) -> date:
    """
    Calculate next due date: last + interval months.

    Month arithmetic clamps to the end of shorter months
    (2024-08-31 + 6 months -> 2025-02-28).
    """
    return last_date + relativedelta(months=interval_months)


def as_instant(value: Instant) -> datetime:
    """Promote a plain date to midnight of that day; datetimes pass through."""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def days_between(start: Instant, end: Instant) -> int:
    """Whole days from ``start`` to ``end``, rounded half up; negative if ``end`` is earlier."""
    delta = as_instant(end) - as_instant(start)
    return math.floor(delta.total_seconds() / 86400 + 0.5)
