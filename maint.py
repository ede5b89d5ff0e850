#!/usr/bin/env python3
"""
Unified CLI for the vehicle maintenance log.

Commands:
  vehicles     - List vehicles in the data file
  add-vehicle  - Register a vehicle
  log          - Log completed work (plans the next service automatically)
  plan         - Add planned work
  edit         - Change a record
  delete       - Delete a record
  history      - View completed work
  upcoming     - View planned work, overdue first
  extract      - Show what would be prefilled from document text
  validate     - Check the data file against the schema
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from servicebook import (
    LifecycleEngine,
    LogNotifier,
    MaintenanceRecord,
    ServicebookError,
    Settings,
    UpcomingView,
    Vehicle,
    YamlStore,
    calc_due_date,
    calc_due_mileage,
    extract_info,
    resolve_interval,
)
from servicebook.validation import validate_file

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_days(days: Optional[int]) -> str:
    """Format a day count for display (e.g., '3mo 15d', 'today' or '-2mo 5d')."""
    if days is None:
        return "-"
    if days == 0:
        return "today"

    sign = "-" if days < 0 else ""
    days = abs(days)
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{sign}{months}mo {remaining_days}d"
    return f"{sign}{days}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    text = " ".join(text.split())
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (expected YYYY-MM-DD)")


def make_history_table(records: List[MaintenanceRecord]) -> List[List[str]]:
    """Convert completed records to table rows."""
    rows = []
    for record in records:
        rows.append(
            [
                record.id[:8],
                record.date.isoformat(),
                format_km(record.mileage),
                record.service_type or "-",
                record.next_service_date.isoformat() if record.next_service_date else "-",
                format_km(record.next_service_mileage),
                truncate(record.works_performed or record.description),
            ]
        )
    return rows


def make_upcoming_table(views: List[UpcomingView]) -> List[List[str]]:
    """Convert upcoming views to table rows."""
    rows = []
    for view in views:
        rows.append(
            [
                view.record.id[:8],
                view.status.name.replace("_", " "),
                view.target_date.isoformat(),
                format_days(view.days_until),
                format_km(view.record.next_service_mileage),
                view.record.service_type or "-",
                truncate(view.record.description),
            ]
        )
    return rows


def print_record(record: MaintenanceRecord) -> None:
    kind = "Planned" if record.is_planned else "Completed"
    print(f"  {kind}: {record.service_type or '-'}")
    print(f"  Date:    {record.date.isoformat()}")
    print(f"  Mileage: {format_km(record.mileage)}")
    if not record.is_planned and record.next_service_date:
        print(
            f"  Next:    {record.next_service_date.isoformat()}"
            f" @ {format_km(record.next_service_mileage)} km"
        )
    if record.description:
        print(f"  Notes:   {truncate(record.description, 60)}")


def resolve_record_id(engine: LifecycleEngine, vehicle_ids: List[str], prefix: str) -> MaintenanceRecord:
    """Find a record by full id or unique id prefix (as shown in tables)."""
    matches = []
    for vehicle_id in vehicle_ids:
        matches.extend(r for r in engine.list_records(vehicle_id) if r.id.startswith(prefix))
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return engine.get_record(prefix)
    raise ServicebookError(f"Record id prefix '{prefix}' is ambiguous")


# =============================================================================
# Commands
# =============================================================================


def cmd_vehicles(engine, args):
    """List vehicles."""
    vehicles = engine.store.list_vehicles()
    if not vehicles:
        print("No vehicles found.")
        return 0
    rows = [[v.id, v.name, len(engine.list_records(v.id))] for v in vehicles]
    print(tabulate(rows, headers=["ID", "Vehicle", "Records"], tablefmt="simple"))
    return 0


def cmd_add_vehicle(engine, args):
    """Register a vehicle."""
    vehicle = Vehicle(args.vehicle_id, args.make, args.model, args.year, args.trim)
    engine.add_vehicle(vehicle)
    print(f"Added vehicle {vehicle.id}: {vehicle.name}")
    return 0


def cmd_log(engine, args):
    """Log completed work."""
    vehicle = engine.get_vehicle(args.vehicle_id)

    service_type = args.type
    works = args.works
    mileage = args.mileage
    attachment = None
    if args.from_text:
        attachment = args.from_text.read_text(encoding="utf-8")
        info = extract_info(attachment)
        service_type = service_type or info.service_type
        works = works or info.works_performed
        mileage = mileage if mileage is not None else info.mileage

    if mileage is None:
        print("Error: --mileage is required (none found in text)")
        return 1

    entry_date = args.date or date.today()
    policy = resolve_interval(service_type)
    print(f"Adding completed work to {vehicle.name}:")
    print(f"  Service: {service_type or '-'}")
    print(f"  Date:    {entry_date.isoformat()}")
    print(f"  Mileage: {format_km(mileage)}")
    print(
        f"  Next:    {calc_due_date(entry_date, policy.time_delta_months).isoformat()}"
        f" @ {format_km(calc_due_mileage(mileage, policy.mileage_delta))} km"
    )
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    record = engine.create_completed(
        args.vehicle_id,
        entry_date,
        mileage,
        service_type=service_type,
        description=args.description,
        works_performed=works,
        attachment_text=attachment,
    )
    print(f"Entry saved ({record.id[:8]}).")
    return 0


def cmd_plan(engine, args):
    """Add planned work."""
    record = engine.create_planned(
        args.vehicle_id,
        args.date,
        service_type=args.type,
        description=args.description,
        target_mileage=args.target_mileage,
    )
    if record is None:
        print(f"Work is already planned for {args.date.isoformat()}; nothing added.")
        return 0
    print(f"Planned work saved ({record.id[:8]}).")
    return 0


def cmd_edit(engine, args):
    """Change a record."""
    vehicle_ids = [v.id for v in engine.store.list_vehicles()]
    record = resolve_record_id(engine, vehicle_ids, args.record_id)

    changes = {}
    if args.date is not None:
        changes["date"] = args.date
    if args.mileage is not None:
        changes["mileage"] = args.mileage
    if args.type is not None:
        changes["service_type"] = args.type
    if args.description is not None:
        changes["description"] = args.description
    if args.works is not None:
        changes["works_performed"] = args.works

    if not changes:
        print("Nothing to change.")
        return 0

    updated = engine.update(record, changes)
    print("Record updated:")
    print_record(updated)
    return 0


def cmd_delete(engine, args):
    """Delete a record."""
    vehicle_ids = [v.id for v in engine.store.list_vehicles()]
    record = resolve_record_id(engine, vehicle_ids, args.record_id)

    print("Deleting:")
    print_record(record)
    print()
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    engine.delete(record)
    print("Record deleted.")
    return 0


def cmd_history(engine, args):
    """View completed work."""
    vehicle = engine.get_vehicle(args.vehicle_id)
    entries = engine.overview(args.vehicle_id).history

    if args.type:
        entries = [e for e in entries if args.type.lower() in (e.service_type or "").lower()]
    if args.since:
        entries = [e for e in entries if e.date >= args.since]

    print(f"Vehicle: {vehicle.name}")
    print(f"Completed services: {len(entries)}")
    print()

    if not entries:
        print("No history entries found.")
        return 0

    headers = ["ID", "Date", "Mileage", "Service", "Next Due", "Next (km)", "Notes"]
    print(tabulate(make_history_table(entries), headers=headers, tablefmt="simple"))
    return 0


def cmd_upcoming(engine, args):
    """View planned work."""
    vehicle = engine.get_vehicle(args.vehicle_id)
    views = engine.overview(args.vehicle_id, datetime.now()).upcoming
    overdue = sum(1 for v in views if v.is_overdue)

    print(f"Vehicle: {vehicle.name}")
    print(f"Planned: {len(views)} ({overdue} overdue)")
    print()

    if not views:
        print("No planned work.")
        return 0

    headers = ["ID", "Status", "Due", "In", "Due (km)", "Service", "Notes"]
    print(tabulate(make_upcoming_table(views), headers=headers, tablefmt="simple"))
    return 0


def cmd_extract(engine, args):
    """Show prefill values for document text."""
    info = extract_info(args.text_file.read_text(encoding="utf-8"))
    print(f"Service: {info.service_type or '-'}")
    print(f"Mileage: {format_km(info.mileage)}")
    print(f"Works:   {truncate(info.works_performed, 60)}")
    return 0


def cmd_validate(args):
    """Check the data file against the schema."""
    errors = validate_file(args.data_file)
    if errors:
        print(f"FAIL: {args.data_file}")
        for error in errors:
            print(f"  {error}")
        return 1
    print(f"OK: {args.data_file}")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle maintenance log",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s garage.yaml add-vehicle golf Volkswagen Golf --year 2017
  %(prog)s garage.yaml log golf --mileage 50000 --type "Oil change"
  %(prog)s garage.yaml log golf --from-text receipt.txt --date 2024-01-01
  %(prog)s garage.yaml plan golf 2024-09-01 --type "Tire replacement"
  %(prog)s garage.yaml upcoming golf
  %(prog)s garage.yaml history golf --since 2024-01-01
  %(prog)s garage.yaml edit 3f2a9c1e --date 2024-08-15
""",
    )
    parser.add_argument(
        "data_file",
        type=Path,
        help="Path to the YAML data file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log engine activity (reminders, forks) to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List vehicles")

    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Register a vehicle")
    add_vehicle_parser.add_argument("vehicle_id", help="Short id (e.g., 'golf')")
    add_vehicle_parser.add_argument("make")
    add_vehicle_parser.add_argument("model")
    add_vehicle_parser.add_argument("--year", type=int)
    add_vehicle_parser.add_argument("--trim")

    log_parser = subparsers.add_parser("log", help="Log completed work")
    log_parser.add_argument("vehicle_id")
    log_parser.add_argument(
        "--date",
        type=parse_date,
        help="Service date in YYYY-MM-DD format (default: today)",
    )
    log_parser.add_argument("--mileage", type=int, help="Odometer reading (km)")
    log_parser.add_argument("--type", help="Service type (e.g., 'Oil change')")
    log_parser.add_argument("--description", help="Notes about the service")
    log_parser.add_argument("--works", help="Work performed")
    log_parser.add_argument(
        "--from-text",
        type=Path,
        help="Text file (e.g., OCR of a receipt) to prefill type, mileage and works from",
    )
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    plan_parser = subparsers.add_parser("plan", help="Add planned work")
    plan_parser.add_argument("vehicle_id")
    plan_parser.add_argument("date", type=parse_date, help="Target date (YYYY-MM-DD)")
    plan_parser.add_argument("--type", help="Service type")
    plan_parser.add_argument("--description", help="Notes")
    plan_parser.add_argument("--target-mileage", type=int, help="Due mileage (km)")

    edit_parser = subparsers.add_parser("edit", help="Change a record")
    edit_parser.add_argument("record_id", help="Record id or unique prefix")
    edit_parser.add_argument("--date", type=parse_date)
    edit_parser.add_argument("--mileage", type=int)
    edit_parser.add_argument("--type")
    edit_parser.add_argument("--description")
    edit_parser.add_argument("--works")

    delete_parser = subparsers.add_parser("delete", help="Delete a record")
    delete_parser.add_argument("record_id", help="Record id or unique prefix")
    delete_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without saving",
    )

    history_parser = subparsers.add_parser("history", help="View completed work")
    history_parser.add_argument("vehicle_id")
    history_parser.add_argument(
        "--type",
        help="Filter to service types containing text (case-insensitive, e.g., 'oil')",
    )
    history_parser.add_argument(
        "--since",
        type=parse_date,
        help="Show only entries since date (YYYY-MM-DD)",
    )

    upcoming_parser = subparsers.add_parser("upcoming", help="View planned work")
    upcoming_parser.add_argument("vehicle_id")

    extract_parser = subparsers.add_parser("extract", help="Show prefill values for a text file")
    extract_parser.add_argument("text_file", type=Path)

    subparsers.add_parser("validate", help="Check the data file against the schema")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command not in ("add-vehicle", "extract") and not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    if args.command == "validate":
        return cmd_validate(args)

    engine = LifecycleEngine(YamlStore(args.data_file), LogNotifier(), settings)

    handlers = {
        "vehicles": cmd_vehicles,
        "add-vehicle": cmd_add_vehicle,
        "log": cmd_log,
        "plan": cmd_plan,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "history": cmd_history,
        "upcoming": cmd_upcoming,
        "extract": cmd_extract,
    }
    try:
        return handlers[args.command](engine, args)
    except ServicebookError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
