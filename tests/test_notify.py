#!/usr/bin/env python3
"""Tests for notifier collaborators."""

import logging
from datetime import datetime

from servicebook import LogNotifier, MemoryNotifier

PAYLOAD = {"title": "Maintenance reminder", "body": "Tomorrow: Oil change"}


class TestMemoryNotifier:
    """Tests for MemoryNotifier."""

    def test_register(self):
        notifier = MemoryNotifier()
        notifier.register("r1:day", datetime(2024, 6, 30, 9, 0), PAYLOAD)

        trigger = notifier.pending["r1:day"]
        assert trigger.fires_at == datetime(2024, 6, 30, 9, 0)
        assert trigger.title == "Maintenance reminder"
        assert trigger.body == "Tomorrow: Oil change"

    def test_last_write_wins(self):
        notifier = MemoryNotifier()
        notifier.register("r1:day", datetime(2024, 6, 30, 9, 0), PAYLOAD)
        notifier.register("r1:day", datetime(2024, 7, 30, 9, 0), PAYLOAD)

        assert len(notifier.pending) == 1
        assert notifier.pending["r1:day"].fires_at == datetime(2024, 7, 30, 9, 0)
        assert notifier.registrations == ["r1:day", "r1:day"]

    def test_cancel_unknown_is_noop(self):
        notifier = MemoryNotifier()
        notifier.cancel("nope")
        assert notifier.pending == {}
        assert notifier.calls == [("cancel", "nope")]


class TestLogNotifier:
    """Tests for LogNotifier."""

    def test_logs_registration(self, caplog):
        with caplog.at_level(logging.INFO, logger="servicebook.notify"):
            LogNotifier().register("r1:day", datetime(2024, 6, 30, 9, 0), PAYLOAD)
        assert "r1:day" in caplog.text
        assert "2024-06-30T09:00" in caplog.text

    def test_logs_cancel(self, caplog):
        with caplog.at_level(logging.INFO, logger="servicebook.notify"):
            LogNotifier().cancel("r1:week")
        assert "r1:week cancelled" in caplog.text
