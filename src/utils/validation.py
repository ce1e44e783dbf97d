"""Data validation and coercion utilities."""
import math
import re
from typing import Any, Dict, Tuple

from src.utils.exceptions import ValidationError

MAX_NAME_LENGTH = 50

_INT_PREFIX = re.compile(r"^\s*([+-]?\d+)")


def validate_name(name: str) -> Tuple[bool, str]:
    """
    Validate attendee name.

    Args:
        name: Name to validate

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if valid
        - (False, "姓名不能为空") if empty
        - (False, "姓名长度不能超过 50 个字符") if too long
    """
    if not isinstance(name, str) or not name.strip():
        return False, "姓名不能为空"
    if len(name.strip()) > MAX_NAME_LENGTH:
        return False, f"姓名长度不能超过 {MAX_NAME_LENGTH} 个字符"
    return True, ""


def normalize_name(name: Any) -> str:
    """
    Normalize name for registration matching.

    Behavior:
        - Trims leading/trailing whitespace
        - Keeps case and internal spacing: "Amy" and "amy" are different people
        - Non-string input normalizes to ""
    """
    if not isinstance(name, str):
        return ""
    return name.strip()


def coerce_count(value: Any) -> int:
    """
    Coerce a family-member count to a non-negative integer.

    Mirrors parse-int semantics of the public form:
        - ints pass through, finite floats are truncated
        - strings use their leading integer prefix ("3 kids" -> 3)
        - anything else (None, "abc", NaN, lists) becomes 0
        - negative results become 0
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not math.isfinite(value):
            return 0
        result = int(value)
    elif isinstance(value, str):
        match = _INT_PREFIX.match(value)
        if not match:
            return 0
        result = int(match.group(1))
    else:
        return 0
    return max(result, 0)


def coerce_text(value: Any) -> str:
    """Coerce an optional text field to a trimmed string."""
    if value is None:
        return ""
    return str(value).strip()


def clean_registration_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize a submitted registration payload.

    Args:
        payload: Wire-format dict (name, englishName, phone,
                 adultFamilyCount, childFamilyCount)

    Returns:
        dict: the same keys, trimmed and coerced

    Raises:
        ValidationError: If the payload is not a dict or the name is invalid
    """
    if not isinstance(payload, dict):
        raise ValidationError("报名数据格式错误")

    is_valid, error_msg = validate_name(payload.get("name"))
    if not is_valid:
        raise ValidationError(error_msg)

    return {
        "name": normalize_name(payload.get("name")),
        "englishName": coerce_text(payload.get("englishName")),
        "phone": coerce_text(payload.get("phone")),
        "adultFamilyCount": coerce_count(payload.get("adultFamilyCount")),
        "childFamilyCount": coerce_count(payload.get("childFamilyCount")),
    }
