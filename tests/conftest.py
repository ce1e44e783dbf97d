"""Shared fixtures: every test gets its own settings and data directory."""
import pytest

from src.services.document_store import (
    JsonFileDocumentStore,
    get_document_store,
    set_document_store,
)
from src.utils.settings import reset_settings

SETTING_VARS = (
    "DATA_DIR",
    "STORAGE_BACKEND",
    "KV_REST_API_URL",
    "KV_REST_API_TOKEN",
    "STORE_TIMEOUT_SECONDS",
    "ADMIN_PASSWORD",
    "EDIT_POLICY",
    "CAPACITY_POLICY",
    "REFRESH_INTERVAL_SECONDS",
    "EDIT_LOG_ASYNC",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Clean environment, data under tmp_path, edit log written inline."""
    for var in SETTING_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("EDIT_LOG_ASYNC", "false")

    reset_settings()
    set_document_store(None)
    yield
    reset_settings()
    set_document_store(None)


@pytest.fixture
def store(tmp_path):
    """Cached file-backed document store installed as the process store."""
    set_document_store(JsonFileDocumentStore(str(tmp_path / "data")))
    return get_document_store()


@pytest.fixture
def open_config(store):
    """Registration open, deadline far in the future, capacity 28."""
    from src.models.app_config import AppConfig
    from src.services.config_service import save_config

    config = AppConfig(is_registration_open=True, deadline=4102444800000, max_capacity=28)
    save_config(config)
    return config
