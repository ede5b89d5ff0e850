"""
Vehicle maintenance log with next-service prediction and reminders.

This package provides:
- Vehicle / MaintenanceRecord: the data model
- resolve_interval: service type -> mileage/time interval
- extract_info: prefill values from recognised document text
- LifecycleEngine: create/update/delete records, fork planned work
- ReminderScheduler: week-before and day-before reminder triggers
- partition: history and upcoming views with overdue annotation
- MemoryStore / YamlStore: storage backends
"""

from .status import Status
from .vehicle import Vehicle
from .record import MaintenanceRecord, PATCHABLE_FIELDS
from .category import CATEGORIES, ServiceCategory, find_category
from .calculations import calc_due_date, calc_due_mileage, days_between
from .intervals import DEFAULT_POLICY, IntervalPolicy, resolve_interval
from .extraction import ExtractedInfo, extract_info
from .errors import (
    NotFound,
    SchedulingFailure,
    ServicebookError,
    StoreError,
    ValidationError,
)
from .config import Settings
from .store import MemoryStore, RecordStore, YamlStore
from .notify import LogNotifier, MemoryNotifier, Notifier, Trigger
from .reminders import ReminderScheduler, trigger_id
from .partition import Partition, UpcomingView, partition
from .lifecycle import LifecycleEngine

__all__ = [
    "Status",
    "Vehicle",
    "MaintenanceRecord",
    "PATCHABLE_FIELDS",
    "CATEGORIES",
    "ServiceCategory",
    "find_category",
    "calc_due_date",
    "calc_due_mileage",
    "days_between",
    "DEFAULT_POLICY",
    "IntervalPolicy",
    "resolve_interval",
    "ExtractedInfo",
    "extract_info",
    "NotFound",
    "SchedulingFailure",
    "ServicebookError",
    "StoreError",
    "ValidationError",
    "Settings",
    "MemoryStore",
    "RecordStore",
    "YamlStore",
    "LogNotifier",
    "MemoryNotifier",
    "Notifier",
    "Trigger",
    "ReminderScheduler",
    "trigger_id",
    "Partition",
    "UpcomingView",
    "partition",
    "LifecycleEngine",
]
