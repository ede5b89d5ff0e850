"""
Lifecycle engine for maintenance records.

Completed work is stored as history and its next due point is computed from
the service type's interval. That due point is then materialised as a
separate planned record (a "fork") so it can be edited, rescheduled or deleted
without touching the history entry it came from. At most one planned record
exists per vehicle and target date.
"""

import dataclasses
import logging
import threading
import uuid
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from .calculations import calc_due_date, calc_due_mileage
from .config import AUTO_PLANNED_NOTE, Settings
from .errors import ValidationError
from .extraction import ExtractedInfo, extract_info
from .intervals import resolve_interval
from .notify import LogNotifier, Notifier
from .partition import Partition, partition
from .record import PATCHABLE_FIELDS, MaintenanceRecord
from .reminders import ReminderScheduler
from .store import RecordStore
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


def _check_date(value: Any, field: str) -> date:
    if value is None:
        raise ValidationError(f"'{field}' is required")
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise ValidationError(f"'{field}' must be a date, got {value!r}")
    return value


def _check_mileage(value: Any, field: str = "mileage", required: bool = True) -> Optional[int]:
    if value is None:
        if required:
            raise ValidationError(f"'{field}' is required")
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"'{field}' must be an integer, got {value!r}")
    if value < 0:
        raise ValidationError(f"'{field}' cannot be negative")
    return value


def _check_text(value: Any, field: str, required: bool = False) -> Optional[str]:
    if value is None:
        if required:
            raise ValidationError(f"'{field}' is required")
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{field}' must be a string, got {value!r}")
    return value


def _check_vehicle(vehicle: Vehicle) -> None:
    if not _check_text(vehicle.id, "id", required=True):
        raise ValidationError("Vehicle id is required")
    _check_text(vehicle.make, "make", required=True)
    _check_text(vehicle.model, "model", required=True)
    _check_text(vehicle.trim, "trim")
    year = vehicle.year
    if year is not None and (isinstance(year, bool) or not isinstance(year, int)):
        raise ValidationError(f"'year' must be an integer, got {year!r}")


class LifecycleEngine:
    """
    Creates, edits and deletes maintenance records.

    Collaborators are injected: ``store`` persists records, ``notifier``
    receives reminder triggers. ``clock`` returns the current instant and is
    used to decide which reminders are still in the future.

    Mutations for one vehicle are serialised with a per-vehicle lock so the
    dedup lookup and the fork creation happen as one step within a process.
    A store shared between processes needs the caller to provide the same
    guarantee.
    """

    def __init__(
        self,
        store: RecordStore,
        notifier: Optional[Notifier] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.store = store
        self.settings = settings or Settings()
        self.scheduler = ReminderScheduler(
            notifier or LogNotifier(), reminder_hour=self.settings.reminder_hour
        )
        self.clock = clock
        self.id_factory = id_factory
        self._locks: Dict[str, threading.RLock] = defaultdict(threading.RLock)
        self._locks_guard = threading.Lock()

    def _lock(self, vehicle_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._locks[vehicle_id]

    # =========================================================================
    # Lookups
    # =========================================================================

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        _check_vehicle(vehicle)
        return self.store.add_vehicle(vehicle)

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        return self.store.get_vehicle(vehicle_id)

    def get_record(self, record_id: str) -> MaintenanceRecord:
        return self.store.get(record_id)

    def list_records(self, vehicle_id: str) -> List[MaintenanceRecord]:
        """All records of a vehicle, newest first."""
        self.store.get_vehicle(vehicle_id)
        return self.store.query(vehicle_id)

    def overview(self, vehicle_id: str, now: Optional[datetime] = None) -> Partition:
        """History and upcoming views for one vehicle, read fresh from the store."""
        records = self.list_records(vehicle_id)
        return partition(records, now or self.clock(), self.settings.due_soon_days)

    def extract(self, raw_text: Optional[str]) -> ExtractedInfo:
        """Prefill values from recognised document text."""
        return extract_info(raw_text)

    # =========================================================================
    # Creation
    # =========================================================================

    def create_completed(
        self,
        vehicle_id: str,
        date: date,
        mileage: int,
        service_type: Optional[str] = None,
        description: Optional[str] = None,
        works_performed: Optional[str] = None,
        attachment_text: Optional[str] = None,
    ) -> MaintenanceRecord:
        """
        Log completed work and fork a planned record for its next due point.

        The fork is skipped silently if the vehicle already has planned work
        on the computed due date.
        """
        with self._lock(vehicle_id):
            self.store.get_vehicle(vehicle_id)
            record = MaintenanceRecord(
                id=self.id_factory(),
                vehicle_id=vehicle_id,
                date=_check_date(date, "date"),
                mileage=_check_mileage(mileage),
                service_type=_check_text(service_type, "service_type"),
                description=_check_text(description, "description"),
                works_performed=_check_text(works_performed, "works_performed"),
                attachment_text=_check_text(attachment_text, "attachment_text"),
                is_planned=False,
            )
            self._compute_next_service(record)
            record = self.store.add(record)
            logger.info(
                "Logged %s for vehicle %s on %s (next due %s / %s km)",
                record.service_type or "service",
                vehicle_id,
                record.date,
                record.next_service_date,
                record.next_service_mileage,
            )

            self.fork_planned(
                vehicle_id,
                record.next_service_date,
                record.next_service_mileage,
                record.service_type,
                snapshot_mileage=record.mileage,
            )
            return record

    def fork_planned(
        self,
        vehicle_id: str,
        target_date: date,
        target_mileage: Optional[int],
        service_type: Optional[str],
        snapshot_mileage: int = 0,
    ) -> Optional[MaintenanceRecord]:
        """
        Create an independent planned record at a due point.

        Returns None (and creates nothing) if the vehicle already has a
        planned record with the same target date.
        """
        with self._lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            target_date = _check_date(target_date, "target_date")
            if self._planned_exists(vehicle_id, target_date):
                return None

            record = MaintenanceRecord(
                id=self.id_factory(),
                vehicle_id=vehicle_id,
                date=target_date,
                mileage=_check_mileage(snapshot_mileage, "snapshot_mileage"),
                service_type=_check_text(service_type, "service_type"),
                description=AUTO_PLANNED_NOTE,
                next_service_date=target_date,
                next_service_mileage=_check_mileage(target_mileage, "target_mileage", required=False),
                is_planned=True,
            )
            record = self.store.add(record)
            logger.info("Planned %s for vehicle %s on %s", service_type or "service", vehicle_id, target_date)
            self.scheduler.schedule(record, self.clock(), vehicle)
            return record

    def create_planned(
        self,
        vehicle_id: str,
        target_date: date,
        service_type: Optional[str] = None,
        description: Optional[str] = None,
        target_mileage: Optional[int] = None,
        mileage: int = 0,
    ) -> Optional[MaintenanceRecord]:
        """User-authored planned work. Returns None if that date is already planned."""
        with self._lock(vehicle_id):
            vehicle = self.store.get_vehicle(vehicle_id)
            target_date = _check_date(target_date, "target_date")
            record = MaintenanceRecord(
                id=self.id_factory(),
                vehicle_id=vehicle_id,
                date=target_date,
                mileage=_check_mileage(mileage),
                service_type=_check_text(service_type, "service_type"),
                description=_check_text(description, "description"),
                next_service_date=target_date,
                next_service_mileage=_check_mileage(target_mileage, "target_mileage", required=False),
                is_planned=True,
            )
            if self._planned_exists(vehicle_id, target_date):
                return None

            record = self.store.add(record)
            logger.info("Planned %s for vehicle %s on %s", service_type or "service", vehicle_id, target_date)
            self.scheduler.schedule(record, self.clock(), vehicle)
            return record

    # =========================================================================
    # Update / delete
    # =========================================================================

    def update(
        self,
        record: MaintenanceRecord,
        patch: Optional[Dict[str, Any]] = None,
        **changes: Any,
    ) -> MaintenanceRecord:
        """
        Apply field changes to one record.

        Planned records: fields are applied as given; a new date moves the due
        point and reschedules reminders. Nothing is recomputed and no other
        record is touched.

        Completed records: the due point is recomputed from the (possibly new)
        service type, date and mileage, which may fork another planned record.
        """
        changes = {**(patch or {}), **changes}
        for name in changes:
            if name not in PATCHABLE_FIELDS:
                raise ValidationError(f"Cannot change '{name}'")

        with self._lock(record.vehicle_id):
            current = self.store.get(record.id)
            updated = dataclasses.replace(current, **changes)
            updated.date = _check_date(updated.date, "date")
            updated.mileage = _check_mileage(updated.mileage)
            for name in ("service_type", "description", "works_performed", "attachment_text"):
                _check_text(getattr(updated, name), name)

            if updated.is_planned:
                updated.next_service_date = updated.date
                updated = self.store.replace(updated)
                logger.info("Updated planned record %s", updated.id)
                if updated.date != current.date:
                    vehicle = self.store.get_vehicle(updated.vehicle_id)
                    self.scheduler.reschedule(updated, self.clock(), vehicle)
                return updated

            self._compute_next_service(updated)
            updated = self.store.replace(updated)
            logger.info(
                "Updated record %s (next due %s / %s km)",
                updated.id,
                updated.next_service_date,
                updated.next_service_mileage,
            )
            self.fork_planned(
                updated.vehicle_id,
                updated.next_service_date,
                updated.next_service_mileage,
                updated.service_type,
                snapshot_mileage=updated.mileage,
            )
            return updated

    def delete(self, record: MaintenanceRecord) -> None:
        """Remove one record. Other records are left as they are."""
        with self._lock(record.vehicle_id):
            current = self.store.get(record.id)
            self.store.remove(current.id)
            logger.info("Deleted record %s", current.id)
            if current.is_planned:
                self.scheduler.cancel(current.id)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _planned_exists(self, vehicle_id: str, target_date: date) -> bool:
        existing = self.store.query(vehicle_id, is_planned=True, next_service_date=target_date)
        if existing:
            logger.debug(
                "Vehicle %s already has planned work on %s (%s), not forking",
                vehicle_id,
                target_date,
                existing[0].id,
            )
            return True
        return False

    @staticmethod
    def _compute_next_service(record: MaintenanceRecord) -> None:
        policy = resolve_interval(record.service_type)
        record.next_service_date = calc_due_date(record.date, policy.time_delta_months)
        record.next_service_mileage = calc_due_mileage(record.mileage, policy.mileage_delta)
