"""
Record storage backends.

The engine only talks to the RecordStore interface. MemoryStore keeps
everything in dictionaries; YamlStore persists the same data to a single
YAML file, rewriting it after each change.

Both hand out copies: mutating a returned record never changes stored state.
"""

import copy
import dataclasses
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import NotFound, StoreError, ValidationError
from .record import MaintenanceRecord
from .validation import validate_document
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """Persistence collaborator for vehicles and maintenance records."""

    @abstractmethod
    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        ...

    @abstractmethod
    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        ...

    @abstractmethod
    def list_vehicles(self) -> List[Vehicle]:
        ...

    @abstractmethod
    def add(self, record: MaintenanceRecord) -> MaintenanceRecord:
        ...

    @abstractmethod
    def get(self, record_id: str) -> MaintenanceRecord:
        ...

    @abstractmethod
    def replace(self, record: MaintenanceRecord) -> MaintenanceRecord:
        ...

    @abstractmethod
    def remove(self, record_id: str) -> None:
        ...

    @abstractmethod
    def query(
        self,
        vehicle_id: str,
        is_planned: Optional[bool] = None,
        next_service_date: Optional[date] = None,
    ) -> List[MaintenanceRecord]:
        """Records of one vehicle matching the filters, newest ``date`` first."""

    def has_vehicle(self, vehicle_id: str) -> bool:
        try:
            self.get_vehicle(vehicle_id)
        except NotFound:
            return False
        return True


class MemoryStore(RecordStore):
    """Dictionary-backed store."""

    def __init__(self):
        self._vehicles: Dict[str, Vehicle] = {}
        self._records: Dict[str, MaintenanceRecord] = {}
        self._lock = threading.RLock()

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self._lock:
            if vehicle.id in self._vehicles:
                raise ValidationError(f"Vehicle '{vehicle.id}' already exists")
            self._vehicles[vehicle.id] = copy.copy(vehicle)
            return copy.copy(vehicle)

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        try:
            return copy.copy(self._vehicles[vehicle_id])
        except KeyError:
            raise NotFound(f"Vehicle '{vehicle_id}' not found") from None

    def list_vehicles(self) -> List[Vehicle]:
        with self._lock:
            return [copy.copy(v) for v in self._vehicles.values()]

    def add(self, record: MaintenanceRecord) -> MaintenanceRecord:
        with self._lock:
            if record.id in self._records:
                raise ValidationError(f"Record '{record.id}' already exists")
            self._records[record.id] = dataclasses.replace(record)
            return dataclasses.replace(record)

    def get(self, record_id: str) -> MaintenanceRecord:
        try:
            return dataclasses.replace(self._records[record_id])
        except KeyError:
            raise NotFound(f"Record '{record_id}' not found") from None

    def replace(self, record: MaintenanceRecord) -> MaintenanceRecord:
        with self._lock:
            if record.id not in self._records:
                raise NotFound(f"Record '{record.id}' not found")
            self._records[record.id] = dataclasses.replace(record)
            return dataclasses.replace(record)

    def remove(self, record_id: str) -> None:
        try:
            del self._records[record_id]
        except KeyError:
            raise NotFound(f"Record '{record_id}' not found") from None

    def query(
        self,
        vehicle_id: str,
        is_planned: Optional[bool] = None,
        next_service_date: Optional[date] = None,
    ) -> List[MaintenanceRecord]:
        with self._lock:
            records = list(self._records.values())
        matching = []
        for record in records:
            if record.vehicle_id != vehicle_id:
                continue
            if is_planned is not None and record.is_planned != is_planned:
                continue
            if next_service_date is not None and record.next_service_date != next_service_date:
                continue
            matching.append(dataclasses.replace(record))
        return sorted(matching, key=lambda r: r.date, reverse=True)


# =============================================================================
# YAML serialisation (camelCase keys, None values omitted)
# =============================================================================


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    """Serialize a Vehicle to the YAML dict format."""
    d: Dict[str, Any] = {"id": vehicle.id, "make": vehicle.make, "model": vehicle.model}
    if vehicle.year is not None:
        d["year"] = vehicle.year
    if vehicle.trim is not None:
        d["trim"] = vehicle.trim
    return d


def vehicle_from_dict(dct: Dict[str, Any]) -> Vehicle:
    return Vehicle(dct["id"], dct["make"], dct["model"], dct.get("year"), dct.get("trim"))


def record_to_dict(record: MaintenanceRecord) -> Dict[str, Any]:
    """Serialize a MaintenanceRecord to the YAML dict format."""
    d: Dict[str, Any] = {
        "id": record.id,
        "vehicleId": record.vehicle_id,
        "date": record.date.isoformat(),
        "mileage": record.mileage,
        "isPlanned": record.is_planned,
    }
    if record.service_type is not None:
        d["serviceType"] = record.service_type
    if record.description is not None:
        d["description"] = record.description
    if record.works_performed is not None:
        d["worksPerformed"] = record.works_performed
    if record.next_service_date is not None:
        d["nextServiceDate"] = record.next_service_date.isoformat()
    if record.next_service_mileage is not None:
        d["nextServiceMileage"] = record.next_service_mileage
    if record.attachment_text is not None:
        d["attachmentText"] = record.attachment_text
    return d


def record_from_dict(dct: Dict[str, Any]) -> MaintenanceRecord:
    return MaintenanceRecord(
        id=dct["id"],
        vehicle_id=dct["vehicleId"],
        date=_parse_date(dct["date"]),
        mileage=dct.get("mileage") or 0,
        service_type=dct.get("serviceType"),
        description=dct.get("description"),
        works_performed=dct.get("worksPerformed"),
        next_service_date=_parse_date(dct.get("nextServiceDate")),
        next_service_mileage=dct.get("nextServiceMileage"),
        is_planned=dct["isPlanned"],
        attachment_text=dct.get("attachmentText"),
    )


class YamlStore(MemoryStore):
    """
    Store backed by one YAML file.

    Every operation reloads the file, so edits made by hand (or by another
    process between calls) are picked up. Mutations write the whole file back.
    A missing file is treated as empty and created on first write.

    Each read-modify-write runs under one lock, and the file is replaced
    atomically, so threads sharing a store never lose or tear writes.
    Separate processes are not coordinated.
    """

    def __init__(self, filename: Union[str, Path]):
        super().__init__()
        self.filename = Path(filename)

    def _read(self) -> None:
        if not self.filename.exists():
            data = {}
        else:
            try:
                with open(self.filename, "r", encoding="utf-8") as fp:
                    data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
            except (yaml.YAMLError, ValueError) as e:
                raise StoreError(f"Cannot parse {self.filename}: {e}") from e

        errors = validate_document(data)
        if errors:
            raise StoreError(f"{self.filename} is invalid: " + "; ".join(errors))

        try:
            vehicles = [vehicle_from_dict(dct) for dct in data.get("vehicles") or []]
            records = [record_from_dict(dct) for dct in data.get("records") or []]
        except ValueError as e:
            raise StoreError(f"{self.filename} is invalid: {e}") from e
        self._vehicles = {v.id: v for v in vehicles}
        self._records = {r.id: r for r in records}

    def _write(self) -> None:
        data = {
            "vehicles": [vehicle_to_dict(v) for v in self._vehicles.values()],
            "records": [record_to_dict(r) for r in self._records.values()],
        }
        # Dump next to the target and swap it in, so readers never see a partial file
        fd, tmp_name = tempfile.mkstemp(
            dir=self.filename.parent, prefix=f".{self.filename.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                yaml.dump(
                    data,
                    fp,
                    default_flow_style=False,
                    allow_unicode=True,
                    sort_keys=False,
                    width=120,
                )
            os.replace(tmp_name, self.filename)
        except BaseException:
            os.unlink(tmp_name)
            raise
        logger.debug("Wrote %d records to %s", len(self._records), self.filename)

    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        with self._lock:
            self._read()
            result = super().add_vehicle(vehicle)
            self._write()
            return result

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        with self._lock:
            self._read()
            return super().get_vehicle(vehicle_id)

    def list_vehicles(self) -> List[Vehicle]:
        with self._lock:
            self._read()
            return super().list_vehicles()

    def add(self, record: MaintenanceRecord) -> MaintenanceRecord:
        with self._lock:
            self._read()
            result = super().add(record)
            self._write()
            return result

    def get(self, record_id: str) -> MaintenanceRecord:
        with self._lock:
            self._read()
            return super().get(record_id)

    def replace(self, record: MaintenanceRecord) -> MaintenanceRecord:
        with self._lock:
            self._read()
            result = super().replace(record)
            self._write()
            return result

    def remove(self, record_id: str) -> None:
        with self._lock:
            self._read()
            super().remove(record_id)
            self._write()

    def query(
        self,
        vehicle_id: str,
        is_planned: Optional[bool] = None,
        next_service_date: Optional[date] = None,
    ) -> List[MaintenanceRecord]:
        with self._lock:
            self._read()
            return super().query(vehicle_id, is_planned, next_service_date)
