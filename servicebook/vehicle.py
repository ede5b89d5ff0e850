"""Vehicle class for identifying the owner of maintenance records."""

from typing import Optional


class Vehicle:
    """Vehicle identity. Records refer to it by ``id`` only."""

    def __init__(
        self,
        id: str,
        make: str,
        model: str,
        year: Optional[int] = None,
        trim: Optional[str] = None,
    ):
        self.id = id
        self.make = make
        self.model = model
        self.year = year
        self.trim = trim

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        base = f"{self.make} {self.model}"
        if self.year:
            base = f"{self.year} {base}"
        return f"{base} {self.trim}" if self.trim else base

    def __eq__(self, other):
        if not isinstance(other, Vehicle):
            return NotImplemented
        return (self.id, self.make, self.model, self.year, self.trim) == (
            other.id,
            other.make,
            other.model,
            other.year,
            other.trim,
        )

    def __repr__(self):
        return f"Vehicle({self.id!r}, {self.name!r})"
