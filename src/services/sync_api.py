"""Single-path JSON endpoint, dispatched on HTTP method.

Framework-neutral: a transport adapter passes the method, the parsed query
string and the decoded JSON body, and sends back (status, payload).

    GET                       -> registration array
    GET    ?type=config       -> AppConfig document
    GET    ?type=campus       -> campus guide array
    POST   {registration}     -> upsert by id, or name-match reconciliation
                                 when the registration carries no id
    POST   {type:"config", config}
    POST   {type:"campus", campusData}
    DELETE {password}         -> clear registrations only
"""
import json
import logging
from typing import Any, Dict, Optional, Tuple

from src.models.app_config import AppConfig
from src.services.campus_service import get_campus_guide, save_campus_guide
from src.services.config_service import get_config, save_config
from src.services.document_store import get_document_store
from src.services.admin_service import clear_all_registrations
from src.services.registration_service import (
    get_all_registrations,
    submit_registration,
    upsert_registration,
)
from src.utils.exceptions import (
    EditLimitReachedError,
    Forbidden,
    PersistenceFailure,
    RegistrationClosedError,
    RegistrationNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

Response = Tuple[int, Any]


def _parse_body(body: Any) -> Dict[str, Any]:
    if body is None or body == "":
        return {}
    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Invalid payload")
    return body


def _handle_get(query: Dict[str, Any]) -> Response:
    kind = query.get("type")
    if kind == "campus":
        return 200, get_campus_guide()
    if kind == "config":
        return 200, get_config().to_dict()
    return 200, [registration.to_dict() for registration in get_all_registrations()]


def _handle_post(body: Dict[str, Any]) -> Response:
    kind = body.get("type")

    if kind == "config" and body.get("config"):
        config = body["config"]
        if not isinstance(config, dict):
            raise ValidationError("Invalid config")
        try:
            parsed = AppConfig(
                is_registration_open=config.get("isRegistrationOpen", True),
                deadline=config.get("deadline"),
                max_capacity=config.get("maxCapacity"),
            )
        except ValueError as e:
            raise ValidationError(str(e))
        save_config(parsed)
        return 200, {"success": True}

    if kind == "campus" and body.get("campusData") is not None:
        save_campus_guide(body["campusData"])
        return 200, {"success": True}

    registration = body.get("registration")
    if isinstance(registration, dict):
        if registration.get("id"):
            upsert_registration(registration)
        else:
            submit_registration(registration)
        return 200, {"success": True}

    return 400, {"error": "Invalid payload"}


def _handle_delete(body: Dict[str, Any]) -> Response:
    clear_all_registrations(body.get("password", ""))
    return 200, {"success": True}


def _degraded_response(method: str, query: Dict[str, Any]) -> Response:
    if method == "GET":
        kind = query.get("type")
        if kind == "config":
            return 200, AppConfig().to_dict()
        return 200, []
    return 503, {"error": "Store not configured"}


def handle_request(
    method: str,
    query: Optional[Dict[str, Any]] = None,
    body: Any = None,
) -> Response:
    """
    Dispatch one request.

    Args:
        method: HTTP method name
        query: Parsed query string (single values)
        body: Decoded JSON body, raw JSON text, or None

    Returns:
        Tuple of (status: int, payload: JSON-serializable)
    """
    method = (method or "").upper()
    query = query or {}

    if method not in ("GET", "POST", "DELETE"):
        return 405, {"error": "Method not allowed"}

    if not get_document_store().is_configured:
        logger.warning("Document store not configured, serving defaults for %s", method)
        return _degraded_response(method, query)

    try:
        if method == "GET":
            return _handle_get(query)
        if method == "POST":
            return _handle_post(_parse_body(body))
        return _handle_delete(_parse_body(body))
    except ValidationError as e:
        return 400, {"error": str(e)}
    except Forbidden:
        return 403, {"error": "Forbidden"}
    except RegistrationNotFoundError as e:
        return 404, {"error": str(e)}
    except RegistrationClosedError as e:
        return 409, {"error": e.message, "reason": e.reason}
    except EditLimitReachedError as e:
        return 409, {"error": str(e), "reason": "edit_limit"}
    except PersistenceFailure as e:
        logger.error("Store error during %s: %s", method, e)
        return 500, {"error": "Internal Server Error", "details": str(e)}
