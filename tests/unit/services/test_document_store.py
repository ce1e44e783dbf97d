"""Unit tests for document store adapters."""
from unittest.mock import MagicMock, patch

import pytest
import requests

from src.services.document_store import (
    CONFIG_KEY,
    REGISTRATIONS_KEY,
    CachedDocumentStore,
    JsonFileDocumentStore,
    KVRestDocumentStore,
    get_document_store,
    set_document_store,
)
from src.utils.exceptions import PersistenceFailure, TransportUnavailable
from src.utils.settings import reset_settings


def _response(payload, status=200):
    response = MagicMock()
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status}")
    return response


class TestJsonFileDocumentStore:
    """Test the file-backed adapter."""

    def test_get_missing_key_returns_none(self, tmp_path):
        """Test an absent document reads as None."""
        store = JsonFileDocumentStore(str(tmp_path))
        assert store.get(REGISTRATIONS_KEY) is None

    def test_set_then_get(self, tmp_path):
        """Test a whole document round trips through its file."""
        store = JsonFileDocumentStore(str(tmp_path))
        store.set(CONFIG_KEY, {"isRegistrationOpen": False})

        assert (tmp_path / f"{CONFIG_KEY}.json").exists()
        assert store.get(CONFIG_KEY) == {"isRegistrationOpen": False}

    def test_delete(self, tmp_path):
        """Test delete removes the document."""
        store = JsonFileDocumentStore(str(tmp_path))
        store.set(REGISTRATIONS_KEY, [])
        store.delete(REGISTRATIONS_KEY)

        assert store.get(REGISTRATIONS_KEY) is None

    def test_corrupt_file_raises_transport_unavailable(self, tmp_path):
        """Test unreadable JSON is a transport failure, not an empty document."""
        (tmp_path / f"{REGISTRATIONS_KEY}.json").write_text("[{", encoding="utf-8")
        store = JsonFileDocumentStore(str(tmp_path))

        with pytest.raises(TransportUnavailable):
            store.get(REGISTRATIONS_KEY)

    def test_rejects_path_like_keys(self, tmp_path):
        """Test keys cannot escape the data directory."""
        store = JsonFileDocumentStore(str(tmp_path))
        with pytest.raises(ValueError):
            store.get("../secrets")


class TestKVRestDocumentStore:
    """Test the REST key-value adapter with requests mocked."""

    @patch("src.services.document_store.requests.request")
    def test_get_decodes_json_string_result(self, mock_request):
        """Test the stored JSON string is decoded into a document."""
        mock_request.return_value = _response({"result": '[{"id": "a"}]'})
        store = KVRestDocumentStore("https://kv.example.com/", "tok", timeout=3)

        assert store.get(REGISTRATIONS_KEY) == [{"id": "a"}]

        args, kwargs = mock_request.call_args
        assert args == ("GET", f"https://kv.example.com/get/{REGISTRATIONS_KEY}")
        assert kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert kwargs["timeout"] == 3

    @patch("src.services.document_store.requests.request")
    def test_get_absent_key(self, mock_request):
        """Test a null result reads as None."""
        mock_request.return_value = _response({"result": None})
        store = KVRestDocumentStore("https://kv.example.com", "tok")

        assert store.get(CONFIG_KEY) is None

    @patch("src.services.document_store.requests.request")
    def test_set_posts_whole_document(self, mock_request):
        """Test set sends the JSON-encoded document as the body."""
        mock_request.return_value = _response({"result": "OK"})
        store = KVRestDocumentStore("https://kv.example.com", "tok")

        store.set(CONFIG_KEY, {"maxCapacity": 28})

        args, kwargs = mock_request.call_args
        assert args == ("POST", f"https://kv.example.com/set/{CONFIG_KEY}")
        assert kwargs["data"] == b'{"maxCapacity": 28}'

    @patch("src.services.document_store.requests.request")
    def test_network_error_raises_transport_unavailable(self, mock_request):
        """Test requests failures map to TransportUnavailable."""
        mock_request.side_effect = requests.exceptions.Timeout("slow")
        store = KVRestDocumentStore("https://kv.example.com", "tok")

        with pytest.raises(TransportUnavailable):
            store.get(REGISTRATIONS_KEY)

    @patch("src.services.document_store.requests.request")
    def test_http_error_raises_transport_unavailable(self, mock_request):
        """Test non-2xx responses map to TransportUnavailable."""
        mock_request.return_value = _response({"error": "unauthorized"}, status=401)
        store = KVRestDocumentStore("https://kv.example.com", "tok")

        with pytest.raises(TransportUnavailable):
            store.set(REGISTRATIONS_KEY, [])

    @patch("src.services.document_store.requests.request")
    def test_unconfigured_never_calls_network(self, mock_request):
        """Test a missing URL or token fails fast."""
        store = KVRestDocumentStore("", "")

        assert store.is_configured is False
        with pytest.raises(TransportUnavailable):
            store.get(REGISTRATIONS_KEY)
        mock_request.assert_not_called()


class TestCachedDocumentStore:
    """Test the read-through cache wrapper."""

    def test_read_failure_serves_last_good_copy(self, tmp_path):
        """Test a failed read returns the cached document."""
        cached = CachedDocumentStore(JsonFileDocumentStore(str(tmp_path)))
        cached.set(REGISTRATIONS_KEY, [{"id": "a"}])

        with patch.object(cached.inner, "get", side_effect=TransportUnavailable("down")):
            assert cached.get(REGISTRATIONS_KEY) == [{"id": "a"}]

    def test_read_failure_without_cache_returns_none(self, tmp_path):
        """Test a failed cold read degrades to None."""
        cached = CachedDocumentStore(JsonFileDocumentStore(str(tmp_path)))

        with patch.object(cached.inner, "get", side_effect=TransportUnavailable("down")):
            assert cached.get(REGISTRATIONS_KEY) is None

    def test_strict_read_propagates(self, tmp_path):
        """Test strict reads never fall back to the cache."""
        cached = CachedDocumentStore(JsonFileDocumentStore(str(tmp_path)))
        cached.set(REGISTRATIONS_KEY, [{"id": "a"}])

        with patch.object(cached.inner, "get", side_effect=TransportUnavailable("down")):
            with pytest.raises(TransportUnavailable):
                cached.get(REGISTRATIONS_KEY, strict=True)

    def test_write_failure_raises_persistence_failure(self, tmp_path):
        """Test failed writes surface and leave the cache untouched."""
        cached = CachedDocumentStore(JsonFileDocumentStore(str(tmp_path)))
        cached.set(REGISTRATIONS_KEY, [{"id": "a"}])

        with patch.object(cached.inner, "set", side_effect=TransportUnavailable("down")):
            with pytest.raises(PersistenceFailure):
                cached.set(REGISTRATIONS_KEY, [])

        with patch.object(cached.inner, "get", side_effect=TransportUnavailable("down")):
            assert cached.get(REGISTRATIONS_KEY) == [{"id": "a"}]

    def test_delete_failure_raises_persistence_failure(self, tmp_path):
        """Test failed deletes surface as PersistenceFailure."""
        cached = CachedDocumentStore(JsonFileDocumentStore(str(tmp_path)))

        with patch.object(cached.inner, "delete", side_effect=TransportUnavailable("down")):
            with pytest.raises(PersistenceFailure):
                cached.delete(REGISTRATIONS_KEY)


class TestGetDocumentStore:
    """Test backend selection from settings."""

    def test_file_backend_by_default(self, tmp_path):
        """Test DATA_DIR files are used when STORAGE_BACKEND is unset."""
        store = get_document_store()

        assert isinstance(store.inner, JsonFileDocumentStore)
        assert store.inner.data_dir == str(tmp_path / "data")
        assert get_document_store() is store

    def test_kv_backend_from_settings(self, monkeypatch):
        """Test STORAGE_BACKEND=kv builds the REST adapter."""
        monkeypatch.setenv("STORAGE_BACKEND", "kv")
        monkeypatch.setenv("KV_REST_API_URL", "https://kv.example.com")
        monkeypatch.setenv("KV_REST_API_TOKEN", "tok")
        monkeypatch.setenv("STORE_TIMEOUT_SECONDS", "2.5")
        reset_settings()
        set_document_store(None)

        store = get_document_store()

        assert isinstance(store.inner, KVRestDocumentStore)
        assert store.inner.timeout == 2.5
        assert store.is_configured is True

    def test_set_document_store_wraps_in_cache(self, tmp_path):
        """Test a bare adapter gets the cache wrapper."""
        inner = JsonFileDocumentStore(str(tmp_path))
        set_document_store(inner)

        assert isinstance(get_document_store(), CachedDocumentStore)
        assert get_document_store().inner is inner
