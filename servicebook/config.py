"""Runtime settings, read from environment variables with development defaults."""

import os
from dataclasses import dataclass
from pathlib import Path

WORKS_PERFORMED_LIMIT = 500

# (suffix, days before the target date)
REMINDER_OFFSETS = (("week", 7), ("day", 1))

AUTO_PLANNED_NOTE = "Created automatically from completed maintenance"


@dataclass
class Settings:
    data_file: Path = Path("servicebook.yaml")
    reminder_hour: int = 9
    due_soon_days: int = 7
    log_level: str = "WARNING"
    secret_key: str = "dev-secret-key-change-in-prod"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from SERVICEBOOK_* variables (and SECRET_KEY)."""
        return cls(
            data_file=Path(os.environ.get("SERVICEBOOK_DATA", "servicebook.yaml")),
            reminder_hour=int(os.environ.get("SERVICEBOOK_REMINDER_HOUR", "9")),
            due_soon_days=int(os.environ.get("SERVICEBOOK_DUE_SOON_DAYS", "7")),
            log_level=os.environ.get("SERVICEBOOK_LOG_LEVEL", "WARNING").upper(),
            secret_key=os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod"),
        )
