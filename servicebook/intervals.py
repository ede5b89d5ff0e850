"""Interval resolution: service type label -> recommended mileage/time interval."""

from dataclasses import dataclass
from typing import Optional

from .category import find_category


@dataclass(frozen=True)
class IntervalPolicy:
    """How far ahead the next instance of a service is due."""

    mileage_delta: int
    time_delta_months: int


DEFAULT_POLICY = IntervalPolicy(mileage_delta=15000, time_delta_months=12)


def resolve_interval(service_type: Optional[str]) -> IntervalPolicy:
    """
    Map a free-form service type label to its interval policy.

    The label is lower-cased and matched against the ordered category table;
    anything unrecognised (including an empty or missing label) gets
    DEFAULT_POLICY.
    """
    category = find_category(service_type or "")
    if category is None:
        return DEFAULT_POLICY
    return IntervalPolicy(
        mileage_delta=category.interval_km,
        time_delta_months=category.interval_months,
    )
