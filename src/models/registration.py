"""Registration data model for the team-building outing."""
from dataclasses import dataclass
from typing import Any, Dict

from src.utils.validation import coerce_count, coerce_text


@dataclass
class Registration:
    """One attendee's submission, counting the attendee plus family members."""

    id: str
    name: str
    english_name: str = ""
    phone: str = ""
    adult_family_count: int = 0
    child_family_count: int = 0
    timestamp: int = 0  # epoch millis of last write
    has_edited: bool = False

    def __post_init__(self):
        """Coerce counts, the store has no schema enforcement."""
        self.adult_family_count = coerce_count(self.adult_family_count)
        self.child_family_count = coerce_count(self.child_family_count)
        self.has_edited = bool(self.has_edited)

    @property
    def headcount(self) -> int:
        """Slots taken by this registration (self + family)."""
        return 1 + self.adult_family_count + self.child_family_count

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored camelCase document shape."""
        return {
            "id": self.id,
            "name": self.name,
            "englishName": self.english_name,
            "phone": self.phone,
            "adultFamilyCount": self.adult_family_count,
            "childFamilyCount": self.child_family_count,
            "timestamp": self.timestamp,
            "hasEdited": self.has_edited,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registration":
        """
        Build a Registration from a stored document entry.

        Missing or malformed fields degrade to defaults instead of raising,
        so one bad entry never hides the rest of the collection.
        """
        timestamp = data.get("timestamp")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            timestamp = 0

        return cls(
            id=coerce_text(data.get("id")),
            name=coerce_text(data.get("name")),
            english_name=coerce_text(data.get("englishName")),
            phone=coerce_text(data.get("phone")),
            adult_family_count=data.get("adultFamilyCount"),
            child_family_count=data.get("childFamilyCount"),
            timestamp=int(timestamp),
            has_edited=data.get("hasEdited", False) is True,
        )
