"""Best-effort extraction of maintenance details from recognised document text."""

import re
from dataclasses import dataclass
from typing import Optional

from .category import find_category
from .config import WORKS_PERFORMED_LIMIT

# An integer (optionally with thousands separators) directly followed by a
# distance unit: "45000 км", "45 000 km", "120 тыс", "60 thousand".
MILEAGE_PATTERN = re.compile(
    r"(?<!\d)(\d{1,3}(?:[ \u00a0,.]\d{3})+|\d+)\s*(?:км|km|тыс|thousand)",
    re.IGNORECASE,
)


@dataclass
class ExtractedInfo:
    """Form prefill values. Every field may be missing."""

    service_type: Optional[str] = None
    works_performed: Optional[str] = None
    mileage: Optional[int] = None


def extract_mileage(text: str) -> Optional[int]:
    """Return the first integer that precedes a distance unit, or None."""
    match = MILEAGE_PATTERN.search(text)
    if not match:
        return None
    digits = re.sub(r"\D", "", match.group(1))
    return int(digits) if digits else None


def extract_info(raw_text: Optional[str]) -> ExtractedInfo:
    """Classify free text into a service type and pull out mileage and work notes."""
    if not raw_text or not raw_text.strip():
        return ExtractedInfo()

    category = find_category(raw_text)
    return ExtractedInfo(
        service_type=category.label if category else None,
        works_performed=raw_text[:WORKS_PERFORMED_LIMIT],
        mileage=extract_mileage(raw_text),
    )
