"""Registration reconciliation: create-vs-merge against the stored collection.

Every write reads the whole collection, mutates it in memory and writes the
whole collection back. Two requests that interleave their read and write
race, and the second write wins.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from src.models.edit_log import ACTION_CREATE, ACTION_UPDATE
from src.models.registration import Registration
from src.services.config_service import evaluate_admission, get_config
from src.services.document_store import REGISTRATIONS_KEY, get_document_store
from src.services.edit_log_service import record_edit
from src.services.identity_cache import IdentityCache
from src.utils.date_utils import now_millis
from src.utils.exceptions import (
    EditLimitReachedError,
    PersistenceFailure,
    RegistrationClosedError,
    RegistrationNotFoundError,
    TransportUnavailable,
)
from src.utils.settings import EDIT_POLICY_SINGLE, get_settings
from src.utils.validation import clean_registration_payload, coerce_text, normalize_name

logger = logging.getLogger(__name__)

NO_MATERIAL_CHANGE = "no material change"

# Submitted fields compared for the diff description, with display labels
DIFF_FIELDS = (
    ("englishName", "english_name", "英文名"),
    ("phone", "phone", "电话"),
    ("adultFamilyCount", "adult_family_count", "随行大人"),
    ("childFamilyCount", "child_family_count", "随行儿童"),
)

NameMatcher = Callable[[Iterable[Registration], str], Optional[Registration]]


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconciled submission."""

    registration: Registration
    created: bool
    details: Optional[str] = None


def _load_documents(strict: bool = False) -> List[Dict[str, Any]]:
    store = get_document_store()
    try:
        documents = store.get(REGISTRATIONS_KEY, strict=strict)
    except TransportUnavailable as e:
        raise PersistenceFailure(f"Cannot read registrations before writing: {e}") from e

    if not isinstance(documents, list):
        if documents is not None:
            logger.warning("Registrations document is not a list, treating as empty")
        return []
    return [doc for doc in documents if isinstance(doc, dict)]


def _save_documents(documents: List[Dict[str, Any]]) -> None:
    get_document_store().set(REGISTRATIONS_KEY, documents)


def get_all_registrations() -> List[Registration]:
    """
    Load all registrations in stored order.

    Returns:
        List[Registration]; cached or empty when the store is unreachable
    """
    return [Registration.from_dict(doc) for doc in _load_documents()]


def get_registration_by_id(registration_id: str) -> Optional[Registration]:
    """Find a registration by id, or None."""
    for registration in get_all_registrations():
        if registration.id == registration_id:
            return registration
    return None


def find_by_normalized_name(
    collection: Iterable[Registration], name: str
) -> Optional[Registration]:
    """
    Find the first record whose trimmed name equals the trimmed input.

    Matching is case-sensitive and exact; duplicates are possible and the
    first one wins. Two different people sharing a name share a record.
    """
    target = normalize_name(name)
    if not target:
        return None
    for registration in collection:
        if normalize_name(registration.name) == target:
            return registration
    return None


def describe_changes(existing: Registration, fields: Dict[str, Any]) -> str:
    """
    Describe which submitted fields differ from the stored record.

    Returns:
        "英文名: Amy -> Amelia; 随行儿童: 0 -> 1" style text, or
        "no material change"
    """
    changes = []
    for wire_key, attr, label in DIFF_FIELDS:
        old = getattr(existing, attr)
        new = fields.get(wire_key, old)
        if old != new:
            changes.append(f"{label}: {old} -> {new}")
    return "; ".join(changes) if changes else NO_MATERIAL_CHANGE


def generate_registration_id(existing_ids: Iterable[str] = ()) -> str:
    """Synthesize an opaque id not present in existing_ids."""
    taken = set(existing_ids)
    while True:
        candidate = uuid.uuid4().hex[:12]
        if candidate not in taken:
            return candidate


def _merge(
    existing: Registration, fields: Dict[str, Any], now: int, registration_id: Optional[str] = None
) -> Registration:
    return Registration(
        id=registration_id or existing.id,
        name=fields["name"],
        english_name=fields["englishName"],
        phone=fields["phone"],
        adult_family_count=fields["adultFamilyCount"],
        child_family_count=fields["childFamilyCount"],
        timestamp=now,
        has_edited=True,
    )


def _check_edit_policy(existing: Registration, edit_policy: Optional[str]) -> None:
    policy = edit_policy or get_settings().edit_policy
    if policy == EDIT_POLICY_SINGLE and existing.has_edited:
        raise EditLimitReachedError("您已经修改过一次报名信息，无法再次修改。")


def _check_admission(
    documents: List[Dict[str, Any]],
    fields: Dict[str, Any],
    own: Optional[Registration],
    now: int,
) -> None:
    collection = [Registration.from_dict(doc) for doc in documents]
    requested = 1 + fields["adultFamilyCount"] + fields["childFamilyCount"]
    decision = evaluate_admission(
        get_config(),
        collection,
        now=now,
        requested_slots=requested,
        own_registration=own,
    )
    if not decision.allowed:
        raise RegistrationClosedError(decision.reason, decision.message)


def _index_of(documents: List[Dict[str, Any]], registration_id: str) -> int:
    """Position of the record with this id, -1 when absent. Blank ids never match."""
    if not registration_id:
        return -1
    for index, doc in enumerate(documents):
        if coerce_text(doc.get("id")) == registration_id:
            return index
    return -1


def submit_registration(
    payload: Dict[str, Any],
    identity: Optional[IdentityCache] = None,
    now: Optional[int] = None,
    enforce_admission: bool = True,
    matcher: NameMatcher = find_by_normalized_name,
    edit_policy: Optional[str] = None,
) -> ReconcileResult:
    """
    Persist a submission, merging into an existing record with the same name.

    Args:
        payload: Wire-format fields (name, englishName, phone,
                 adultFamilyCount, childFamilyCount)
        identity: Own-registration pointer to update on success
        now: Epoch millis to stamp (default: current time)
        enforce_admission: Run the admission gate before writing
        matcher: Name matching function
        edit_policy: "single" or "unlimited" (default: from settings)

    Returns:
        ReconcileResult with the persisted record

    Raises:
        ValidationError: If the name is empty or too long
        RegistrationClosedError: If the admission gate refuses
        EditLimitReachedError: If single-edit policy refuses a second edit
        PersistenceFailure: If the collection couldn't be read or written
    """
    fields = clean_registration_payload(payload)
    current = now_millis() if now is None else now

    documents = _load_documents(strict=True)
    collection = [Registration.from_dict(doc) for doc in documents]
    existing = matcher(collection, fields["name"])

    if existing is not None:
        _check_edit_policy(existing, edit_policy)

    if enforce_admission:
        _check_admission(documents, fields, existing, current)

    if existing is not None:
        # collection is built 1:1 from documents, so position identifies the record
        index = next((i for i, candidate in enumerate(collection) if candidate is existing), -1)
        if index == -1:
            index = _index_of(documents, existing.id)
        if index == -1:
            raise RegistrationNotFoundError(f"找不到报名记录: {existing.name}")
        details = describe_changes(existing, fields)
        new_id = None
        if not existing.id:
            new_id = generate_registration_id(coerce_text(doc.get("id")) for doc in documents)
        registration = _merge(existing, fields, current, registration_id=new_id)
        documents[index] = registration.to_dict()
        _save_documents(documents)
        logger.info("Registration %s updated by name match", registration.id)
        record_edit(registration.name, ACTION_UPDATE, details)
        result = ReconcileResult(registration, created=False, details=details)
    else:
        registration = Registration(
            id=generate_registration_id(coerce_text(doc.get("id")) for doc in documents),
            name=fields["name"],
            english_name=fields["englishName"],
            phone=fields["phone"],
            adult_family_count=fields["adultFamilyCount"],
            child_family_count=fields["childFamilyCount"],
            timestamp=current,
            has_edited=False,
        )
        documents.append(registration.to_dict())
        _save_documents(documents)
        logger.info("Registration %s created", registration.id)
        record_edit(registration.name, ACTION_CREATE)
        result = ReconcileResult(registration, created=True)

    if identity is not None:
        identity.remember(registration.id)
    return result


def update_registration(
    registration_id: str,
    payload: Dict[str, Any],
    identity: Optional[IdentityCache] = None,
    now: Optional[int] = None,
    enforce_admission: bool = True,
    edit_policy: Optional[str] = None,
) -> Registration:
    """
    Update a registration located by its id (the "edit my registration" path).

    Raises:
        RegistrationNotFoundError: If no record has this id (nothing written)
        EditLimitReachedError: If single-edit policy refuses a second edit
        RegistrationClosedError: If the admission gate refuses
        ValidationError: If the name is empty or too long
        PersistenceFailure: If the collection couldn't be read or written
    """
    fields = clean_registration_payload(payload)
    current = now_millis() if now is None else now

    documents = _load_documents(strict=True)
    index = _index_of(documents, registration_id)
    if index == -1:
        raise RegistrationNotFoundError(f"找不到报名记录: {registration_id}")

    existing = Registration.from_dict(documents[index])
    _check_edit_policy(existing, edit_policy)

    if enforce_admission:
        _check_admission(documents, fields, existing, current)

    details = describe_changes(existing, fields)
    registration = _merge(existing, fields, current)
    documents[index] = registration.to_dict()
    _save_documents(documents)
    logger.info("Registration %s updated by id", registration.id)
    record_edit(registration.name, ACTION_UPDATE, details)

    if identity is not None:
        identity.remember(registration.id)
    return registration


def upsert_registration(
    document: Dict[str, Any],
    now: Optional[int] = None,
    enforce_admission: bool = True,
    edit_policy: Optional[str] = None,
) -> Registration:
    """
    Replace the record with the same id, or append it when the id is new.

    A known id is an edit: the edit policy applies and hasEdited is forced
    true whatever the caller sent. An unknown id is a create with
    hasEdited false. Counts are coerced and the timestamp is refreshed.

    Raises:
        ValidationError: If the name is empty or too long
        EditLimitReachedError: If single-edit policy refuses a second edit
        RegistrationClosedError: If the admission gate refuses
        PersistenceFailure: If the collection couldn't be read or written
    """
    fields = clean_registration_payload(document)
    registration_id = coerce_text(document.get("id"))
    current = now_millis() if now is None else now

    documents = _load_documents(strict=True)
    if not registration_id:
        registration_id = generate_registration_id(coerce_text(doc.get("id")) for doc in documents)

    index = _index_of(documents, registration_id)
    existing = Registration.from_dict(documents[index]) if index != -1 else None
    if existing is not None:
        _check_edit_policy(existing, edit_policy)

    if enforce_admission:
        _check_admission(documents, fields, existing, current)

    if existing is None:
        registration = Registration(
            id=registration_id,
            name=fields["name"],
            english_name=fields["englishName"],
            phone=fields["phone"],
            adult_family_count=fields["adultFamilyCount"],
            child_family_count=fields["childFamilyCount"],
            timestamp=current,
            has_edited=False,
        )
        documents.append(registration.to_dict())
        action, details = ACTION_CREATE, None
    else:
        details = describe_changes(existing, fields)
        registration = _merge(existing, fields, current)
        documents[index] = registration.to_dict()
        action = ACTION_UPDATE
    _save_documents(documents)
    logger.info("Registration %s upserted (%s)", registration_id, action)
    record_edit(registration.name, action, details)
    return registration


def admin_update_registration(
    registration_id: str, payload: Dict[str, Any], now: Optional[int] = None
) -> Registration:
    """
    Admin correction of an entry. Leaves hasEdited as it was.

    Raises:
        RegistrationNotFoundError: If no record has this id
        ValidationError: If the name is empty or too long
        PersistenceFailure: If the collection couldn't be read or written
    """
    fields = clean_registration_payload(payload)
    current = now_millis() if now is None else now

    documents = _load_documents(strict=True)
    index = _index_of(documents, registration_id)
    if index == -1:
        raise RegistrationNotFoundError(f"找不到报名记录: {registration_id}")

    existing = Registration.from_dict(documents[index])
    details = describe_changes(existing, fields)
    registration = _merge(existing, fields, current)
    registration.has_edited = existing.has_edited
    documents[index] = registration.to_dict()
    _save_documents(documents)
    logger.info("Registration %s corrected by admin", registration_id)
    record_edit(registration.name, ACTION_UPDATE, f"[admin] {details}")
    return registration


def delete_registration(registration_id: str) -> bool:
    """
    Remove one entry by id.

    Returns:
        bool: True if removed, False if the id wasn't found (nothing written)

    Raises:
        PersistenceFailure: If the collection couldn't be read or written
    """
    documents = _load_documents(strict=True)
    if not registration_id:
        return False
    remaining = [doc for doc in documents if coerce_text(doc.get("id")) != registration_id]
    if len(remaining) == len(documents):
        return False

    _save_documents(remaining)
    logger.info("Registration %s deleted by admin", registration_id)
    return True


def clear_registrations() -> None:
    """
    Delete the whole registration collection. Config and campus documents
    are separate keys and stay untouched.

    Raises:
        PersistenceFailure: If the store didn't accept the delete
    """
    get_document_store().delete(REGISTRATIONS_KEY)
    logger.warning("All registrations cleared by admin")
