"""Headcount statistics computed from the full registration collection."""
from dataclasses import dataclass
from typing import Any, Iterable, Union

from src.models.registration import Registration
from src.utils.validation import coerce_count

RegistrationLike = Union[Registration, dict]


@dataclass(frozen=True)
class RegistrationStats:
    """Per-category sums shown on the progress bar and the admin dashboard."""

    registrants: int = 0
    adult_family: int = 0
    child_family: int = 0

    @property
    def total_headcount(self) -> int:
        return self.registrants + self.adult_family + self.child_family


def _counts(record: Any) -> tuple:
    if isinstance(record, Registration):
        return record.adult_family_count, record.child_family_count
    if isinstance(record, dict):
        return (
            coerce_count(record.get("adultFamilyCount")),
            coerce_count(record.get("childFamilyCount")),
        )
    return 0, 0


def compute_stats(collection: Iterable[RegistrationLike]) -> RegistrationStats:
    """
    Sum registrants and family members over a collection.

    Args:
        collection: Registration objects or raw stored dicts

    Returns:
        RegistrationStats; counts are re-coerced so malformed stored values
        count as 0 instead of poisoning the sums
    """
    registrants = adults = children = 0
    for record in collection or []:
        adult, child = _counts(record)
        registrants += 1
        adults += adult
        children += child
    return RegistrationStats(registrants=registrants, adult_family=adults, child_family=children)


def total_headcount(collection: Iterable[RegistrationLike]) -> int:
    """Sum over records of (1 + adultFamilyCount + childFamilyCount)."""
    return compute_stats(collection).total_headcount


def remaining_slots(headcount: int, max_capacity: int) -> int:
    """Slots left before the capacity target; negative when over target."""
    return max_capacity - headcount


def progress_percent(headcount: int, max_capacity: int) -> float:
    """Progress towards the capacity target, capped to 0-100."""
    if max_capacity <= 0:
        return 100.0 if headcount > 0 else 0.0
    return min(100.0, max(0.0, headcount / max_capacity * 100.0))
