"""
Notification collaborators.

A Notifier registers time-anchored triggers under caller-chosen ids.
Registering an id that is already pending replaces it (last write wins),
and cancelling an unknown id is a no-op.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)


@dataclass
class Trigger:
    """A pending notification."""

    id: str
    fires_at: datetime
    title: str
    body: str


class Notifier(ABC):
    """Delivery side of reminders."""

    @abstractmethod
    def register(self, trigger_id: str, fires_at: datetime, payload: Dict[str, str]) -> None:
        """Schedule ``payload`` ({"title", "body"}) to fire at ``fires_at``."""

    @abstractmethod
    def cancel(self, trigger_id: str) -> None:
        """Drop a pending trigger, if any."""


class MemoryNotifier(Notifier):
    """Keeps pending triggers in a dict; ``calls`` records every request in order."""

    def __init__(self):
        self.pending: Dict[str, Trigger] = {}
        self.calls: List[Tuple[str, str]] = []

    def register(self, trigger_id: str, fires_at: datetime, payload: Dict[str, str]) -> None:
        self.calls.append(("register", trigger_id))
        self.pending[trigger_id] = Trigger(
            trigger_id, fires_at, payload["title"], payload["body"]
        )

    def cancel(self, trigger_id: str) -> None:
        self.calls.append(("cancel", trigger_id))
        self.pending.pop(trigger_id, None)

    @property
    def registrations(self) -> List[str]:
        return [trigger_id for action, trigger_id in self.calls if action == "register"]


class LogNotifier(Notifier):
    """Writes triggers to the log instead of delivering them."""

    def register(self, trigger_id: str, fires_at: datetime, payload: Dict[str, str]) -> None:
        logger.info(
            "Reminder %s at %s: %s - %s",
            trigger_id,
            fires_at.isoformat(timespec="minutes"),
            payload["title"],
            payload["body"],
        )

    def cancel(self, trigger_id: str) -> None:
        logger.info("Reminder %s cancelled", trigger_id)
