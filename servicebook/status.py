"""Status enum for upcoming maintenance urgency levels."""

from enum import Enum


class Status(Enum):
    """Upcoming work categories. Lower value = more urgent."""

    OVERDUE = 1
    DUE_SOON = 2
    SCHEDULED = 3
