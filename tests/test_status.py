#!/usr/bin/env python3
"""Tests for Status enum."""

from servicebook import Status


class TestStatus:
    """Tests for Status enum ordering."""

    def test_urgency_ordering(self):
        """Lower value = more urgent."""
        assert Status.OVERDUE.value < Status.DUE_SOON.value
        assert Status.DUE_SOON.value < Status.SCHEDULED.value

    def test_sorting_by_value_puts_overdue_first(self):
        statuses = [Status.SCHEDULED, Status.OVERDUE, Status.DUE_SOON]
        assert sorted(statuses, key=lambda s: s.value) == [
            Status.OVERDUE,
            Status.DUE_SOON,
            Status.SCHEDULED,
        ]
