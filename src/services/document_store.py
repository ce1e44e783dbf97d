"""Document store adapters.

Every document is a whole JSON array or object addressed by a fixed key.
There are no partial updates and no concurrency tokens: set() replaces the
prior value and the last writer wins.
"""
import json
import logging
import os
import re
from threading import Lock
from typing import Any, Dict, Optional

import requests

from src.services.storage_service import delete_json, load_json, save_json
from src.utils.exceptions import PersistenceFailure, TransportUnavailable
from src.utils.settings import get_settings

logger = logging.getLogger(__name__)

REGISTRATIONS_KEY = "corsair_2026_registrations"
CAMPUS_KEY = "corsair_2026_campus_info"
CONFIG_KEY = "corsair_2026_app_config"
EDIT_LOGS_KEY = "corsair_2026_edit_logs"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class DocumentStore:
    """Contract for a key -> whole-document store."""

    is_configured = True

    def get(self, key: str) -> Optional[Any]:
        """Return the document stored under key, or None when absent."""
        raise NotImplementedError

    def set(self, key: str, document: Any) -> None:
        """Replace the document stored under key."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove the document stored under key (no-op when absent)."""
        raise NotImplementedError


class JsonFileDocumentStore(DocumentStore):
    """One UTF-8 JSON file per key inside a data directory."""

    def __init__(self, data_dir: str):
        self.data_dir = data_dir

    def _path(self, key: str) -> str:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid document key: {key!r}")
        return os.path.join(self.data_dir, f"{key}.json")

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            return load_json(path)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, OSError) as e:
            raise TransportUnavailable(f"Cannot read {key}: {e}") from e

    def set(self, key: str, document: Any) -> None:
        try:
            save_json(self._path(key), document, backup=True)
        except IOError as e:
            raise TransportUnavailable(f"Cannot write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            delete_json(self._path(key), backup=True)
        except IOError as e:
            raise TransportUnavailable(f"Cannot delete {key}: {e}") from e


class KVRestDocumentStore(DocumentStore):
    """
    Remote key-value store reached over its REST interface.

    Speaks the Upstash / Vercel KV REST dialect:
        GET  {url}/get/{key}  -> {"result": "<json>" | null}
        POST {url}/set/{key}  body: JSON-encoded document
        POST {url}/del/{key}
    Every call is bounded by `timeout` seconds.
    """

    def __init__(self, url: str, token: str, timeout: float = 5.0):
        self.url = (url or "").rstrip("/")
        self.token = token or ""
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.token)

    def _call(self, method: str, path: str, data: Optional[str] = None) -> Any:
        if not self.is_configured:
            raise TransportUnavailable("KV store is not configured")

        try:
            response = requests.request(
                method,
                f"{self.url}/{path}",
                headers={"Authorization": f"Bearer {self.token}"},
                data=data.encode("utf-8") if data is not None else None,
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise TransportUnavailable(f"KV request {method} {path} failed: {e}") from e
        except ValueError as e:
            raise TransportUnavailable(f"KV response for {path} is not JSON: {e}") from e

        if isinstance(payload, dict) and payload.get("error"):
            raise TransportUnavailable(f"KV error for {path}: {payload['error']}")

        return payload.get("result") if isinstance(payload, dict) else None

    def get(self, key: str) -> Optional[Any]:
        result = self._call("GET", f"get/{key}")
        if isinstance(result, str):
            try:
                return json.loads(result)
            except json.JSONDecodeError:
                return result
        return result

    def set(self, key: str, document: Any) -> None:
        self._call("POST", f"set/{key}", data=json.dumps(document, ensure_ascii=False))

    def delete(self, key: str) -> None:
        self._call("POST", f"del/{key}")


class CachedDocumentStore(DocumentStore):
    """
    Read-through wrapper keeping the last good value of each key.

    Reads that hit TransportUnavailable fall back to the cached value (or
    None) unless strict=True. Writes that fail raise PersistenceFailure and
    leave the cache untouched.
    """

    def __init__(self, inner: DocumentStore):
        self.inner = inner
        self._cache: Dict[str, Any] = {}
        self._lock = Lock()

    @property
    def is_configured(self) -> bool:
        return self.inner.is_configured

    def get(self, key: str, strict: bool = False) -> Optional[Any]:
        try:
            document = self.inner.get(key)
        except TransportUnavailable as e:
            if strict:
                raise
            logger.warning("Store read failed for %s, serving cached copy: %s", key, e)
            with self._lock:
                return self._cache.get(key)

        with self._lock:
            if document is None:
                self._cache.pop(key, None)
            else:
                self._cache[key] = document
        return document

    def set(self, key: str, document: Any) -> None:
        try:
            self.inner.set(key, document)
        except TransportUnavailable as e:
            logger.error("Store write failed for %s: %s", key, e)
            raise PersistenceFailure(str(e)) from e

        with self._lock:
            self._cache[key] = document

    def delete(self, key: str) -> None:
        try:
            self.inner.delete(key)
        except TransportUnavailable as e:
            logger.error("Store delete failed for %s: %s", key, e)
            raise PersistenceFailure(str(e)) from e

        with self._lock:
            self._cache.pop(key, None)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()


_store: Optional[CachedDocumentStore] = None
_store_lock = Lock()


def get_document_store() -> CachedDocumentStore:
    """
    Return the process-wide document store.

    The backend is picked from settings: the KV REST store when
    STORAGE_BACKEND=kv, otherwise JSON files under DATA_DIR.
    """
    global _store

    if _store is not None:
        return _store

    with _store_lock:
        if _store is None:
            settings = get_settings()
            if settings.storage_backend == "kv":
                if not settings.kv_configured:
                    logger.warning("STORAGE_BACKEND=kv but KV_REST_API_URL/KV_REST_API_TOKEN are missing")
                inner: DocumentStore = KVRestDocumentStore(
                    settings.kv_url, settings.kv_token, timeout=settings.store_timeout
                )
            else:
                inner = JsonFileDocumentStore(settings.data_dir)
            _store = CachedDocumentStore(inner)
    return _store


def set_document_store(store: Optional[DocumentStore]) -> None:
    """Install a specific store (wrapped in a cache); None resets to settings."""
    global _store
    with _store_lock:
        if store is None or isinstance(store, CachedDocumentStore):
            _store = store
        else:
            _store = CachedDocumentStore(store)
