#!/usr/bin/env python3
"""Tests for LifecycleEngine."""

import threading
from datetime import date, datetime, timedelta

import pytest

from servicebook import (
    LifecycleEngine,
    MemoryNotifier,
    MemoryStore,
    Notifier,
    NotFound,
    SchedulingFailure,
    Settings,
    Status,
    ValidationError,
    Vehicle,
    YamlStore,
)
from servicebook.config import AUTO_PLANNED_NOTE

CLOCK = datetime(2024, 1, 1, 12, 0)


class FailingNotifier(Notifier):
    def register(self, trigger_id, fires_at, payload):
        raise SchedulingFailure("permission denied")

    def cancel(self, trigger_id):
        raise SchedulingFailure("permission denied")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return MemoryNotifier()


@pytest.fixture
def engine(store, notifier):
    engine = LifecycleEngine(store, notifier, clock=lambda: CLOCK)
    engine.add_vehicle(Vehicle("golf", "Volkswagen", "Golf", 2017))
    return engine


def planned_records(engine, vehicle_id="golf"):
    return [r for r in engine.list_records(vehicle_id) if r.is_planned]


def completed_records(engine, vehicle_id="golf"):
    return [r for r in engine.list_records(vehicle_id) if not r.is_planned]


class TestCreateCompleted:
    """Tests for logging completed work."""

    def test_next_service_computed(self, engine):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")

        assert not record.is_planned
        assert record.next_service_date == date(2024, 7, 1)
        assert record.next_service_mileage == 60000

    def test_forks_planned_record(self, engine):
        engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")

        planned = planned_records(engine)
        assert len(planned) == 1
        fork = planned[0]
        assert fork.date == date(2024, 7, 1)
        assert fork.next_service_date == date(2024, 7, 1)
        assert fork.next_service_mileage == 60000
        assert fork.service_type == "Oil change"
        assert fork.description == AUTO_PLANNED_NOTE
        assert fork.mileage == 50000

    def test_fork_has_both_reminders(self, engine, notifier):
        engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        fork = planned_records(engine)[0]

        assert notifier.pending[f"{fork.id}:week"].fires_at == datetime(2024, 6, 24, 9, 0)
        assert notifier.pending[f"{fork.id}:day"].fires_at == datetime(2024, 6, 30, 9, 0)
        assert notifier.pending[f"{fork.id}:day"].body == (
            "Tomorrow: Oil change for 2017 Volkswagen Golf"
        )

    def test_unknown_type_uses_default_interval(self, engine):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Wipers")
        assert record.next_service_date == date(2025, 1, 1)
        assert record.next_service_mileage == 65000

    def test_no_type_uses_default_interval(self, engine):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000)
        assert record.next_service_date == date(2025, 1, 1)
        assert record.next_service_mileage == 65000

    def test_same_due_date_forks_once(self, engine):
        engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        engine.create_completed("golf", date(2024, 1, 1), 50100, service_type="Oil change")

        assert len(completed_records(engine)) == 2
        planned = planned_records(engine)
        assert len(planned) == 1
        # first write wins
        assert planned[0].next_service_mileage == 60000

    def test_existing_plan_blocks_fork(self, engine):
        manual = engine.create_planned("golf", date(2024, 7, 1), service_type="Tire rotation")
        engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")

        planned = planned_records(engine)
        assert [r.id for r in planned] == [manual.id]

    def test_datetime_date_is_truncated(self, engine):
        record = engine.create_completed("golf", datetime(2024, 1, 1, 15, 30), 50000)
        assert record.date == date(2024, 1, 1)

    @pytest.mark.parametrize(
        "day, mileage",
        [
            (date(2024, 1, 1), -1),
            (date(2024, 1, 1), None),
            (date(2024, 1, 1), "50000"),
            (date(2024, 1, 1), True),
            ("2024-01-01", 50000),
            (None, 50000),
        ],
    )
    def test_invalid_input_rejected(self, engine, day, mileage):
        with pytest.raises(ValidationError):
            engine.create_completed("golf", day, mileage)
        assert engine.list_records("golf") == []

    def test_unknown_vehicle(self, engine):
        with pytest.raises(NotFound):
            engine.create_completed("missing", date(2024, 1, 1), 50000)

    def test_scheduling_failure_does_not_fail_creation(self, store):
        engine = LifecycleEngine(store, FailingNotifier(), clock=lambda: CLOCK)
        engine.add_vehicle(Vehicle("golf", "Volkswagen", "Golf"))

        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")

        assert store.get(record.id) == record
        assert len(planned_records(engine)) == 1


class TestCreatePlanned:
    """Tests for user-authored planned work."""

    def test_creates_and_schedules(self, engine, notifier):
        record = engine.create_planned(
            "golf", date(2024, 3, 1), service_type="Diagnostics", target_mileage=55000
        )

        assert record.is_planned
        assert record.next_service_date == date(2024, 3, 1)
        assert record.next_service_mileage == 55000
        assert sorted(notifier.pending) == sorted([f"{record.id}:week", f"{record.id}:day"])

    def test_duplicate_date_returns_none(self, engine):
        engine.create_planned("golf", date(2024, 3, 1))
        assert engine.create_planned("golf", date(2024, 3, 1), service_type="Other") is None
        assert len(planned_records(engine)) == 1

    def test_past_date_is_stored_without_reminders(self, engine, notifier):
        record = engine.create_planned("golf", date(2023, 12, 1))
        assert engine.get_record(record.id).is_planned
        assert notifier.pending == {}

    def test_negative_target_mileage_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.create_planned("golf", date(2024, 3, 1), target_mileage=-5)
        assert engine.list_records("golf") == []


class TestUpdatePlanned:
    """Editing planned records changes only that record."""

    @pytest.fixture
    def fork(self, engine):
        engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        return planned_records(engine)[0]

    def test_no_recompute(self, engine, fork):
        updated = engine.update(fork, service_type="Brake pads")

        assert updated.service_type == "Brake pads"
        assert updated.next_service_date == date(2024, 7, 1)
        assert updated.next_service_mileage == 60000
        assert len(planned_records(engine)) == 1

    def test_date_change_moves_due_point_and_reminders(self, engine, notifier, fork):
        updated = engine.update(fork, {"date": date(2024, 8, 1)})

        assert updated.date == date(2024, 8, 1)
        assert updated.next_service_date == date(2024, 8, 1)
        assert notifier.pending[f"{fork.id}:week"].fires_at == datetime(2024, 7, 25, 9, 0)
        assert notifier.pending[f"{fork.id}:day"].fires_at == datetime(2024, 7, 31, 9, 0)

    def test_date_close_to_now_drops_week_reminder(self, engine, notifier, fork):
        engine.update(fork, date=date(2024, 1, 3))
        assert list(notifier.pending) == [f"{fork.id}:day"]

    def test_completed_record_untouched(self, engine, fork):
        before = completed_records(engine)
        engine.update(fork, date=date(2024, 9, 1), description="Moved")
        assert completed_records(engine) == before

    def test_non_date_change_does_not_reschedule(self, engine, notifier, fork):
        calls = len(notifier.calls)
        engine.update(fork, description="Ask about the wipers too")
        assert len(notifier.calls) == calls

    def test_stale_record(self, engine, fork):
        engine.delete(fork)
        with pytest.raises(NotFound):
            engine.update(fork, description="Too late")


class TestUpdateCompleted:
    """Editing completed records recomputes their due point."""

    def test_type_change_recomputes_and_forks(self, engine):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")

        updated = engine.update(record, service_type="Brake pads")

        assert updated.next_service_date == date(2027, 1, 1)
        assert updated.next_service_mileage == 100000
        targets = sorted(r.next_service_date for r in planned_records(engine))
        assert targets == [date(2024, 7, 1), date(2027, 1, 1)]

    def test_unchanged_due_point_does_not_fork_again(self, engine):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        engine.update(record, description="Castrol 5W-30")
        assert len(planned_records(engine)) == 1

    @pytest.mark.parametrize(
        "changes",
        [
            {"mileage": -10},
            {"mileage": None},
            {"date": "2024-02-01"},
            {"vehicle_id": "other"},
            {"is_planned": True},
            {"next_service_date": date(2030, 1, 1)},
        ],
    )
    def test_invalid_changes_rejected(self, engine, changes):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        with pytest.raises(ValidationError):
            engine.update(record, changes)
        assert engine.get_record(record.id) == record


class TestDelete:
    """Deleting never cascades."""

    def test_delete_planned_cancels_reminders(self, engine, notifier):
        completed = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        fork = planned_records(engine)[0]

        engine.delete(fork)

        assert notifier.pending == {}
        assert planned_records(engine) == []
        assert engine.get_record(completed.id) == completed

    def test_delete_completed_keeps_fork(self, engine, notifier):
        completed = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        fork = planned_records(engine)[0]
        calls = len(notifier.calls)

        engine.delete(completed)

        assert completed_records(engine) == []
        assert planned_records(engine) == [fork]
        assert len(notifier.calls) == calls

    def test_delete_twice(self, engine):
        record = engine.create_planned("golf", date(2024, 3, 1))
        engine.delete(record)
        with pytest.raises(NotFound):
            engine.delete(record)


class TestQueries:
    """Tests for lookups and the overview."""

    def test_overview(self, engine):
        engine.create_completed("golf", date(2023, 7, 1), 40000, service_type="Oil change")
        engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Diagnostics")

        overview = engine.overview("golf", datetime(2024, 2, 1))

        assert [r.date for r in overview.history] == [date(2024, 1, 1), date(2023, 7, 1)]
        assert [v.target_date for v in overview.upcoming] == [date(2024, 1, 1), date(2024, 7, 1)]
        assert overview.upcoming[0].status == Status.OVERDUE
        assert overview.upcoming[1].status == Status.SCHEDULED

    def test_overview_defaults_to_clock(self, engine):
        engine.create_planned("golf", date(2024, 1, 5))
        view = engine.overview("golf").upcoming[0]
        assert view.status == Status.DUE_SOON
        assert not view.is_overdue

    def test_due_soon_window_from_settings(self, store):
        engine = LifecycleEngine(store, settings=Settings(due_soon_days=2), clock=lambda: CLOCK)
        engine.add_vehicle(Vehicle("golf", "Volkswagen", "Golf"))
        engine.create_planned("golf", date(2024, 1, 5))
        assert engine.overview("golf").upcoming[0].status == Status.SCHEDULED

    def test_unknown_vehicle(self, engine):
        with pytest.raises(NotFound):
            engine.list_records("missing")
        with pytest.raises(NotFound):
            engine.overview("missing")

    def test_reminder_hour_from_settings(self, store, notifier):
        engine = LifecycleEngine(
            store, notifier, settings=Settings(reminder_hour=18), clock=lambda: CLOCK
        )
        engine.add_vehicle(Vehicle("golf", "Volkswagen", "Golf"))
        record = engine.create_planned("golf", date(2024, 3, 1))
        assert notifier.pending[f"{record.id}:day"].fires_at == datetime(2024, 2, 29, 18, 0)

    def test_add_vehicle_requires_id(self, engine):
        with pytest.raises(ValidationError):
            engine.add_vehicle(Vehicle("", "Lada", "Vesta"))

    def test_extract(self, engine):
        info = engine.extract("Замена масла, пробег 60000 км")
        assert info.service_type == "Oil change"
        assert info.mileage == 60000


class TestFieldTypes:
    """Values of the wrong type are rejected before anything is stored."""

    @pytest.mark.parametrize(
        "field", ["service_type", "description", "works_performed", "attachment_text"]
    )
    def test_create_completed_rejects_non_text(self, engine, field):
        with pytest.raises(ValidationError):
            engine.create_completed("golf", date(2024, 1, 1), 50000, **{field: 123})
        assert engine.list_records("golf") == []

    @pytest.mark.parametrize("field", ["service_type", "description"])
    def test_create_planned_rejects_non_text(self, engine, field):
        with pytest.raises(ValidationError):
            engine.create_planned("golf", date(2024, 3, 1), **{field: 42})
        assert engine.list_records("golf") == []

    @pytest.mark.parametrize(
        "field", ["service_type", "description", "works_performed", "attachment_text"]
    )
    def test_update_rejects_non_text(self, engine, field):
        record = engine.create_completed("golf", date(2024, 1, 1), 50000, service_type="Oil change")
        with pytest.raises(ValidationError):
            engine.update(record, {field: 42})
        assert engine.get_record(record.id) == record

    def test_fork_rejects_bad_target_mileage(self, engine):
        with pytest.raises(ValidationError):
            engine.fork_planned("golf", date(2024, 7, 1), "60000", "Oil change")
        assert engine.list_records("golf") == []

    @pytest.mark.parametrize(
        "vehicle",
        [
            Vehicle("up", "Volkswagen", "Up", "2019"),
            Vehicle("up", "Volkswagen", "Up", True),
            Vehicle("up", 7, "Up"),
            Vehicle("up", "Volkswagen", None),
            Vehicle("up", "Volkswagen", "Up", 2019, 4),
            Vehicle(12, "Volkswagen", "Up"),
        ],
    )
    def test_add_vehicle_rejects_bad_fields(self, engine, vehicle):
        with pytest.raises(ValidationError):
            engine.add_vehicle(vehicle)
        assert [v.id for v in engine.store.list_vehicles()] == ["golf"]

    def test_yaml_file_stays_readable(self, tmp_path):
        """A rejected value never reaches the data file."""
        engine = LifecycleEngine(YamlStore(tmp_path / "garage.yaml"), clock=lambda: CLOCK)
        engine.add_vehicle(Vehicle("golf", "Volkswagen", "Golf"))

        with pytest.raises(ValidationError):
            engine.create_completed("golf", date(2024, 1, 1), 1000, description=123)
        with pytest.raises(ValidationError):
            engine.add_vehicle(Vehicle("up", "Volkswagen", "Up", "2019"))

        assert engine.list_records("golf") == []
        assert engine.get_vehicle("golf").year is None


class TestConcurrency:
    def test_two_vehicles_in_parallel_on_one_yaml_store(self, tmp_path):
        """Mutations for different vehicles run in parallel without losing writes."""
        engine = LifecycleEngine(YamlStore(tmp_path / "garage.yaml"), clock=lambda: CLOCK)
        engine.add_vehicle(Vehicle("golf", "Volkswagen", "Golf"))
        engine.add_vehicle(Vehicle("vesta", "Lada", "Vesta"))
        errors = []

        def log_work(vehicle_id):
            try:
                for n in range(10):
                    engine.create_completed(
                        vehicle_id, date(2024, 1, 1) + timedelta(days=n), 1000 * n, "Oil change"
                    )
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=log_work, args=(v,)) for v in ("golf", "vesta")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        for vehicle_id in ("golf", "vesta"):
            assert len(completed_records(engine, vehicle_id)) == 10
            assert len(planned_records(engine, vehicle_id)) == 10
