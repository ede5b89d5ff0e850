"""MaintenanceRecord dataclass for completed and planned service work."""

from dataclasses import dataclass
from datetime import date
from typing import Optional

# Fields a caller may change through LifecycleEngine.update().
PATCHABLE_FIELDS = (
    "date",
    "mileage",
    "service_type",
    "description",
    "works_performed",
    "attachment_text",
)


@dataclass
class MaintenanceRecord:
    """
    A single maintenance entry owned by one vehicle.

    Completed records (``is_planned=False``) document work already done and
    carry a computed due point in ``next_service_date``/``next_service_mileage``.
    Planned records (``is_planned=True``) are the due point itself, so their
    ``next_service_date`` always equals ``date``.

    A planned record has no field pointing back to the completed record it
    was derived from.
    """

    id: str
    vehicle_id: str
    date: date
    mileage: int = 0
    service_type: Optional[str] = None
    description: Optional[str] = None
    works_performed: Optional[str] = None
    next_service_date: Optional[date] = None
    next_service_mileage: Optional[int] = None
    is_planned: bool = False
    attachment_text: Optional[str] = None

    @property
    def target_date(self) -> Optional[date]:
        """Date the record points at: its own date when planned, else the due date."""
        if self.is_planned:
            return self.date
        return self.next_service_date
