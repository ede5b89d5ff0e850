"""Split a vehicle's records into service history and upcoming work."""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List

from .calculations import Instant, as_instant, days_between
from .record import MaintenanceRecord
from .status import Status


@dataclass
class UpcomingView:
    """A planned record annotated relative to "now"."""

    record: MaintenanceRecord
    target_date: date
    is_overdue: bool
    days_until: int
    status: Status = Status.SCHEDULED

    @property
    def is_due(self) -> bool:
        return self.status in (Status.OVERDUE, Status.DUE_SOON)


@dataclass
class Partition:
    history: List[MaintenanceRecord] = field(default_factory=list)
    upcoming: List[UpcomingView] = field(default_factory=list)


def upcoming_view(record: MaintenanceRecord, now: Instant, due_soon_days: int = 7) -> UpcomingView:
    """Annotate one planned record with overdue flag, day count and status."""
    target = record.date
    is_overdue = as_instant(target) < as_instant(now)
    days_until = days_between(now, target)
    if is_overdue:
        status = Status.OVERDUE
    elif days_until <= due_soon_days:
        status = Status.DUE_SOON
    else:
        status = Status.SCHEDULED
    return UpcomingView(
        record=record,
        target_date=target,
        is_overdue=is_overdue,
        days_until=days_until,
        status=status,
    )


def partition(
    records: Iterable[MaintenanceRecord], now: Instant, due_soon_days: int = 7
) -> Partition:
    """
    Partition one vehicle's records.

    - history: completed records, most recent ``date`` first
    - upcoming: planned records, earliest target first, so overdue work
      surfaces at the top
    """
    records = list(records)
    history = sorted(
        (r for r in records if not r.is_planned), key=lambda r: r.date, reverse=True
    )
    upcoming = sorted(
        (upcoming_view(r, now, due_soon_days) for r in records if r.is_planned),
        key=lambda v: v.target_date,
    )
    return Partition(history=history, upcoming=upcoming)
