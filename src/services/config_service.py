"""AppConfig persistence and the admission gate."""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from src.models.app_config import AppConfig
from src.models.registration import Registration
from src.services.aggregation_service import total_headcount
from src.services.document_store import CONFIG_KEY, get_document_store
from src.utils.date_utils import format_millis, now_millis
from src.utils.settings import CAPACITY_POLICY_BLOCKING, get_settings

logger = logging.getLogger(__name__)

REASON_OPEN = "open"
REASON_DEADLINE_PASSED = "deadline_passed"
REASON_PAUSED = "paused"
REASON_FULL = "full"


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of the admission gate."""

    allowed: bool
    reason: str
    message: str
    is_full: bool = False


def get_config() -> AppConfig:
    """
    Load the AppConfig document.

    Returns:
        AppConfig: stored values, or defaults when the document is absent,
        malformed, or the store is unreachable
    """
    document = get_document_store().get(CONFIG_KEY)
    return AppConfig.from_dict(document)


def save_config(config: AppConfig) -> None:
    """
    Overwrite the whole AppConfig document. Last writer wins.

    Raises:
        PersistenceFailure: If the store didn't accept the write
    """
    get_document_store().set(CONFIG_KEY, config.to_dict())
    logger.info(
        "App config saved: open=%s deadline=%s max_capacity=%s",
        config.is_registration_open,
        format_millis(config.deadline),
        config.max_capacity,
    )


def evaluate_admission(
    config: AppConfig,
    registrations: Iterable[Registration],
    now: Optional[int] = None,
    capacity_policy: Optional[str] = None,
    requested_slots: int = 0,
    own_registration: Optional[Registration] = None,
) -> AdmissionDecision:
    """
    Decide whether a registration attempt is currently permitted.

    Args:
        config: Current AppConfig
        registrations: Current registration collection
        now: Epoch millis to evaluate at (default: current time)
        capacity_policy: "blocking" or "advisory" (default: from settings)
        requested_slots: Slots the submission would take (1 + family)
        own_registration: Caller's existing record when editing; its slots
                          are not counted as occupied

    Returns:
        AdmissionDecision. Checks run in order: deadline, admin pause,
        capacity (capacity only refuses in blocking mode).
    """
    current = now_millis() if now is None else now
    policy = capacity_policy or get_settings().capacity_policy

    occupied = total_headcount(registrations)
    if own_registration is not None:
        occupied -= own_registration.headcount
    is_full = occupied >= config.max_capacity
    overflow = requested_slots > 0 and occupied + requested_slots > config.max_capacity

    if current > config.deadline:
        return AdmissionDecision(
            False, REASON_DEADLINE_PASSED, "抱歉，报名时间已截止。", is_full
        )

    if not config.is_registration_open:
        return AdmissionDecision(
            False, REASON_PAUSED, "报名已暂停，请稍后再试。", is_full
        )

    if policy == CAPACITY_POLICY_BLOCKING and (is_full or overflow):
        remaining = max(config.max_capacity - occupied, 0)
        return AdmissionDecision(
            False, REASON_FULL, f"抱歉，名额不足。当前仅剩 {remaining} 个名额。", True
        )

    return AdmissionDecision(True, REASON_OPEN, "", is_full)
