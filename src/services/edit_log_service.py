"""Best-effort, append-only edit log.

A failed log write never reaches the caller: the registration write it
describes has already been persisted.
"""
import logging
import threading
import uuid
from typing import List, Optional

from src.models.edit_log import EditLog
from src.services.document_store import EDIT_LOGS_KEY, get_document_store
from src.utils.date_utils import now_millis
from src.utils.settings import get_settings

logger = logging.getLogger(__name__)

MAX_LOG_ENTRIES = 500


def _append(entry: EditLog) -> None:
    try:
        store = get_document_store()
        # strict read: an unreadable log is left untouched
        logs = store.get(EDIT_LOGS_KEY, strict=True)
        if not isinstance(logs, list):
            logs = []
        logs.append(entry.to_dict())
        store.set(EDIT_LOGS_KEY, logs[-MAX_LOG_ENTRIES:])
    except Exception as e:
        logger.warning("Dropped edit log entry for %s: %s", entry.user_name, e)


def record_edit(
    user_name: str,
    action: str,
    details: Optional[str] = None,
    background: Optional[bool] = None,
) -> EditLog:
    """
    Record a create/update entry, fire-and-forget.

    Args:
        user_name: Registrant name the write concerned
        action: "create" or "update"
        details: Human-readable diff for updates
        background: If True, persist on a daemon thread and return at once
                    (default: EDIT_LOG_ASYNC setting)

    Returns:
        EditLog: the entry that was (attempted to be) recorded
    """
    entry = EditLog(
        id=uuid.uuid4().hex[:12],
        user_name=user_name,
        timestamp=now_millis(),
        action=action,
        details=details,
    )
    logger.info("Edit log: %s %s %s", action, user_name, details or "")

    if background is None:
        background = get_settings().edit_log_async

    if background:
        threading.Thread(target=_append, args=(entry,), daemon=True).start()
    else:
        _append(entry)
    return entry


def get_edit_logs(limit: Optional[int] = None) -> List[EditLog]:
    """
    Load edit log entries, newest first.

    Returns:
        List[EditLog]; empty when the log is absent or unreadable
    """
    logs = get_document_store().get(EDIT_LOGS_KEY)
    if not isinstance(logs, list):
        return []

    entries = [EditLog.from_dict(item) for item in logs if isinstance(item, dict)]
    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries[:limit] if limit else entries
