"""Flask JSON API for the vehicle maintenance log."""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from servicebook import (
    LifecycleEngine,
    LogNotifier,
    NotFound,
    ServicebookError,
    Settings,
    StoreError,
    UpcomingView,
    ValidationError,
    Vehicle,
    YamlStore,
)
from servicebook.store import record_to_dict, vehicle_to_dict

logger = logging.getLogger(__name__)

settings = Settings.from_env()

app = Flask(__name__)
app.secret_key = settings.secret_key

# camelCase request keys -> MaintenanceRecord fields
FIELD_NAMES = {
    "date": "date",
    "mileage": "mileage",
    "serviceType": "service_type",
    "description": "description",
    "worksPerformed": "works_performed",
    "attachmentText": "attachment_text",
}


def get_engine() -> LifecycleEngine:
    """Engine configured on the app, or one over the configured data file."""
    engine = app.config.get("ENGINE")
    if engine is None:
        engine = LifecycleEngine(YamlStore(settings.data_file), LogNotifier(), settings)
        app.config["ENGINE"] = engine
    return engine


def parse_date(value: Any, field: str) -> Optional[date]:
    """Parse an ISO date from a request value."""
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{field}' must be a YYYY-MM-DD date, got {value!r}")


def request_json() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def upcoming_to_dict(view: UpcomingView) -> Dict[str, Any]:
    d = record_to_dict(view.record)
    d.update(
        {
            "targetDate": view.target_date.isoformat(),
            "isOverdue": view.is_overdue,
            "daysUntil": view.days_until,
            "status": view.status.name.lower(),
        }
    )
    return d


@app.errorhandler(ValidationError)
def handle_validation_error(error):
    return jsonify({"error": str(error)}), 400


@app.errorhandler(NotFound)
def handle_not_found(error):
    return jsonify({"error": str(error)}), 404


@app.errorhandler(StoreError)
@app.errorhandler(ServicebookError)
def handle_servicebook_error(error):
    logger.error("Request failed: %s", error)
    return jsonify({"error": str(error)}), 500


@app.route("/vehicles", methods=["GET"])
def list_vehicles():
    """All vehicles."""
    vehicles = get_engine().store.list_vehicles()
    return jsonify([vehicle_to_dict(v) for v in vehicles])


@app.route("/vehicles", methods=["POST"])
def add_vehicle():
    """Register a vehicle."""
    data = request_json()
    if not data.get("id") or not data.get("make") or not data.get("model"):
        raise ValidationError("'id', 'make' and 'model' are required")
    vehicle = get_engine().add_vehicle(
        Vehicle(data["id"], data["make"], data["model"], data.get("year"), data.get("trim"))
    )
    return jsonify(vehicle_to_dict(vehicle)), 201


@app.route("/vehicles/<vehicle_id>/records", methods=["GET"])
def vehicle_records(vehicle_id: str):
    """History and upcoming lists for one vehicle."""
    now = parse_date(request.args.get("now"), "now")
    overview = get_engine().overview(
        vehicle_id, datetime.combine(now, datetime.min.time()) if now else None
    )
    return jsonify(
        {
            "history": [record_to_dict(r) for r in overview.history],
            "upcoming": [upcoming_to_dict(v) for v in overview.upcoming],
        }
    )


@app.route("/vehicles/<vehicle_id>/records", methods=["POST"])
def create_record(vehicle_id: str):
    """Create a completed record, or a planned one with ``"isPlanned": true``."""
    data = request_json()
    engine = get_engine()
    record_date = parse_date(data.get("date"), "date")

    if data.get("isPlanned"):
        record = engine.create_planned(
            vehicle_id,
            record_date,
            service_type=data.get("serviceType"),
            description=data.get("description"),
            target_mileage=data.get("targetMileage"),
            mileage=data.get("mileage", 0),
        )
        if record is None:
            return jsonify({"record": None, "skipped": "already planned for that date"}), 200
    else:
        record = engine.create_completed(
            vehicle_id,
            record_date,
            data.get("mileage"),
            service_type=data.get("serviceType"),
            description=data.get("description"),
            works_performed=data.get("worksPerformed"),
            attachment_text=data.get("attachmentText"),
        )
    return jsonify({"record": record_to_dict(record)}), 201


@app.route("/records/<record_id>", methods=["PATCH"])
def update_record(record_id: str):
    """Apply field changes to one record."""
    data = request_json()
    changes = {}
    for key, value in data.items():
        if key not in FIELD_NAMES:
            raise ValidationError(f"Cannot change '{key}'")
        if key == "date":
            value = parse_date(value, "date")
        changes[FIELD_NAMES[key]] = value

    engine = get_engine()
    record = engine.update(engine.get_record(record_id), changes)
    return jsonify({"record": record_to_dict(record)})


@app.route("/records/<record_id>", methods=["DELETE"])
def delete_record(record_id: str):
    """Delete one record."""
    engine = get_engine()
    engine.delete(engine.get_record(record_id))
    return jsonify({"message": "Record deleted"})


@app.route("/extract", methods=["POST"])
def extract():
    """Prefill values for recognised document text."""
    data = request_json()
    info = get_engine().extract(data.get("text"))
    return jsonify(
        {
            "serviceType": info.service_type,
            "worksPerformed": info.works_performed,
            "mileage": info.mileage,
        }
    )


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level)
    app.run(debug=True, host="0.0.0.0", port=5001)
