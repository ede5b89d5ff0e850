"""ServiceCategory class and the ordered table of known service categories."""

from typing import Tuple


class ServiceCategory:
    """A kind of maintenance work with its recommended interval."""

    def __init__(
        self,
        key: str,
        label: str,
        keywords: Tuple[str, ...],
        interval_km: int,
        interval_months: int,
    ):
        self.key = key
        self.label = label
        self.keywords = keywords
        self.interval_km = interval_km
        self.interval_months = interval_months

    def matches(self, text: str) -> bool:
        """True if any keyword occurs in the already lower-cased text."""
        return any(keyword in text for keyword in self.keywords)

    def __repr__(self):
        return f"ServiceCategory({self.key!r})"


# Order matters: the first matching category wins.
CATEGORIES: Tuple[ServiceCategory, ...] = (
    ServiceCategory(
        "oil_change",
        "Oil change",
        ("oil", "масл"),
        interval_km=10000,
        interval_months=6,
    ),
    ServiceCategory(
        "brakes",
        "Brake replacement",
        ("brake", "тормоз"),
        interval_km=50000,
        interval_months=36,
    ),
    ServiceCategory(
        "tires",
        "Tire replacement",
        ("tire", "tyre", "шин"),
        interval_km=50000,
        interval_months=48,
    ),
    ServiceCategory(
        "filters",
        "Filter replacement",
        ("filter", "фильтр"),
        interval_km=15000,
        interval_months=12,
    ),
    ServiceCategory(
        "diagnostics",
        "Diagnostics",
        ("diagnos", "inspect", "диагност", "осмотр"),
        interval_km=10000,
        interval_months=6,
    ),
    ServiceCategory(
        "scheduled_maintenance",
        "Scheduled maintenance",
        ("maintenance", "service", "техническ", "плановое"),
        interval_km=15000,
        interval_months=12,
    ),
)


def find_category(text: str):
    """Return the first category whose keywords occur in ``text``, or None."""
    lowered = (text or "").lower()
    for category in CATEGORIES:
        if category.matches(lowered):
            return category
    return None
