"""Global registration settings model."""
from dataclasses import dataclass
from typing import Any, Dict

# 2025-12-26 18:00 (UTC+08:00)
DEFAULT_DEADLINE = 1766743200000
# Progress-bar target; only blocks submissions in blocking capacity mode
DEFAULT_MAX_CAPACITY = 28


@dataclass
class AppConfig:
    """Singleton settings document, overwritten wholesale by admins."""

    is_registration_open: bool = True
    deadline: int = DEFAULT_DEADLINE
    max_capacity: int = DEFAULT_MAX_CAPACITY

    def __post_init__(self):
        """Validate config data after initialization."""
        if not isinstance(self.is_registration_open, bool):
            raise ValueError(
                f"isRegistrationOpen must be a boolean, got: {self.is_registration_open!r}"
            )

        if not isinstance(self.deadline, int) or isinstance(self.deadline, bool):
            raise ValueError(f"Deadline must be epoch milliseconds, got: {self.deadline!r}")

        if not isinstance(self.max_capacity, int) or self.max_capacity < 0:
            raise ValueError("Max capacity must be a non-negative integer")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isRegistrationOpen": self.is_registration_open,
            "deadline": self.deadline,
            "maxCapacity": self.max_capacity,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AppConfig":
        """
        Build AppConfig from a stored document.

        Args:
            data: Stored document (may be None or partial)

        Returns:
            AppConfig with defaults for missing or malformed fields
        """
        if not isinstance(data, dict):
            return cls()

        is_open = data.get("isRegistrationOpen", True)
        deadline = data.get("deadline", DEFAULT_DEADLINE)
        max_capacity = data.get("maxCapacity", DEFAULT_MAX_CAPACITY)

        if isinstance(deadline, float) and deadline.is_integer():
            deadline = int(deadline)
        if not isinstance(deadline, int) or isinstance(deadline, bool):
            deadline = DEFAULT_DEADLINE
        if not isinstance(max_capacity, int) or isinstance(max_capacity, bool) or max_capacity < 0:
            max_capacity = DEFAULT_MAX_CAPACITY

        if not isinstance(is_open, bool):
            is_open = True

        return cls(
            is_registration_open=is_open,
            deadline=deadline,
            max_capacity=max_capacity,
        )
