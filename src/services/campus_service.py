"""Campus guide content, stored as a pass-through document."""
import logging
from typing import Any, Dict, List

from src.services.document_store import CAMPUS_KEY, get_document_store
from src.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


def get_campus_guide() -> List[Dict[str, Any]]:
    """
    Load campus guide sections.

    Returns:
        List of section dicts ({title, description, image, items});
        empty list when unset or unreachable
    """
    document = get_document_store().get(CAMPUS_KEY)
    if not isinstance(document, list):
        return []
    return [section for section in document if isinstance(section, dict)]


def save_campus_guide(sections: Any) -> None:
    """
    Overwrite the campus guide document.

    Raises:
        ValidationError: If sections is not a list of objects
        PersistenceFailure: If the store didn't accept the write
    """
    if not isinstance(sections, list) or not all(isinstance(s, dict) for s in sections):
        raise ValidationError("园区指南必须是对象数组")

    get_document_store().set(CAMPUS_KEY, sections)
    logger.info("Campus guide saved (%d sections)", len(sections))
