"""Edit log entry model."""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from src.utils.validation import coerce_count

ACTION_CREATE = "create"
ACTION_UPDATE = "update"


@dataclass
class EditLog:
    """Observational record of a registration write. Not authoritative."""

    id: str
    user_name: str
    timestamp: int
    action: str
    details: Optional[str] = None

    def __post_init__(self):
        if self.action not in (ACTION_CREATE, ACTION_UPDATE):
            raise ValueError(f"Action must be 'create' or 'update', got: {self.action}")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "userName": self.user_name,
            "timestamp": self.timestamp,
            "action": self.action,
        }
        if self.details is not None:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EditLog":
        action = data.get("action")
        return cls(
            id=str(data.get("id", "")),
            user_name=str(data.get("userName", "")),
            timestamp=coerce_count(data.get("timestamp")),
            action=action if action in (ACTION_CREATE, ACTION_UPDATE) else ACTION_UPDATE,
            details=data.get("details"),
        )
