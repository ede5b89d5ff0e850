"""Reminder scheduling for planned maintenance records."""

import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from .calculations import Instant, as_instant
from .config import REMINDER_OFFSETS
from .notify import Notifier
from .record import MaintenanceRecord
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Maintenance reminder"

_BODY_PREFIX = {
    "week": "In one week",
    "day": "Tomorrow",
}


def trigger_id(record_id: str, suffix: str) -> str:
    """Deterministic trigger id, e.g. ``"<record id>:week"``."""
    return f"{record_id}:{suffix}"


class ReminderScheduler:
    """
    Registers the week-before and day-before triggers of a planned record.

    Trigger ids are derived from the record id, so scheduling the same record
    again replaces its triggers instead of adding new ones. Notifier failures
    are logged and swallowed: a reminder problem never fails the record change
    that caused it.
    """

    def __init__(self, notifier: Notifier, reminder_hour: int = 9):
        self.notifier = notifier
        self.reminder_time = time(hour=reminder_hour)

    def candidates(self, record: MaintenanceRecord) -> List[Tuple[str, str, datetime]]:
        """(suffix, trigger id, fire instant) for each reminder offset."""
        result = []
        for suffix, days in REMINDER_OFFSETS:
            fires_at = datetime.combine(record.date - timedelta(days=days), self.reminder_time)
            result.append((suffix, trigger_id(record.id, suffix), fires_at))
        return result

    def schedule(
        self,
        record: MaintenanceRecord,
        now: Instant,
        vehicle: Optional[Vehicle] = None,
    ) -> List[str]:
        """
        Register every reminder of ``record`` that is still in the future.

        Returns the ids that were registered successfully. A target date in
        the past simply registers nothing.
        """
        if not record.is_planned:
            logger.debug("Record %s is not planned, no reminders", record.id)
            return []

        now = as_instant(now)
        registered = []
        for suffix, tid, fires_at in self.candidates(record):
            if fires_at <= now:
                logger.debug("Skipping reminder %s: %s is not after %s", tid, fires_at, now)
                continue
            payload = {"title": REMINDER_TITLE, "body": self._body(suffix, record, vehicle)}
            try:
                self.notifier.register(tid, fires_at, payload)
            except Exception:
                logger.warning("Failed to register reminder %s", tid, exc_info=True)
                continue
            logger.info("Registered reminder %s for %s", tid, fires_at.isoformat(timespec="minutes"))
            registered.append(tid)
        return registered

    def cancel(self, record_id: str) -> None:
        """Cancel both triggers of a record."""
        for suffix, _days in REMINDER_OFFSETS:
            tid = trigger_id(record_id, suffix)
            try:
                self.notifier.cancel(tid)
            except Exception:
                logger.warning("Failed to cancel reminder %s", tid, exc_info=True)

    def reschedule(
        self,
        record: MaintenanceRecord,
        now: Instant,
        vehicle: Optional[Vehicle] = None,
    ) -> List[str]:
        """Drop any pending triggers of ``record`` and schedule it again."""
        self.cancel(record.id)
        return self.schedule(record, now, vehicle)

    @staticmethod
    def _body(suffix: str, record: MaintenanceRecord, vehicle: Optional[Vehicle]) -> str:
        service = record.service_type or "maintenance"
        body = f"{_BODY_PREFIX[suffix]}: {service}"
        if vehicle is not None:
            body += f" for {vehicle.name}"
        return body
