"""Environment-driven application settings."""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Optional

logger = logging.getLogger(__name__)

EDIT_POLICY_SINGLE = "single"
EDIT_POLICY_UNLIMITED = "unlimited"
EDIT_POLICIES = {EDIT_POLICY_SINGLE, EDIT_POLICY_UNLIMITED}

CAPACITY_POLICY_BLOCKING = "blocking"
CAPACITY_POLICY_ADVISORY = "advisory"
CAPACITY_POLICIES = {CAPACITY_POLICY_BLOCKING, CAPACITY_POLICY_ADVISORY}

DEFAULT_ADMIN_PASSWORD = "sce2026"

_ENV_LOADED = False
_ENV_LOCK = Lock()
_SETTINGS: Optional["Settings"] = None


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration read from the environment."""

    data_dir: str = "data"
    storage_backend: str = "file"
    kv_url: str = ""
    kv_token: str = ""
    store_timeout: float = 5.0
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    edit_policy: str = EDIT_POLICY_UNLIMITED
    capacity_policy: str = CAPACITY_POLICY_ADVISORY
    refresh_interval: int = 15
    edit_log_async: bool = True
    log_level: str = "INFO"

    @property
    def kv_configured(self) -> bool:
        return bool(self.kv_url and self.kv_token)


def load_env_file(env_path: str = ".env") -> None:
    """
    Load variables from a .env file if present.

    Behavior:
        - Runs once per process
        - Skips blank lines, comments and lines without '='
        - Strips surrounding quotes from values
        - Never overrides variables already set in the environment
    """
    global _ENV_LOADED

    if _ENV_LOADED:
        return

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        path = Path(env_path)
        if path.exists():
            for raw_line in path.read_text(encoding="utf-8").splitlines():
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue

                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip().strip('"\'')

                if key and key not in os.environ:
                    os.environ[key] = value

        _ENV_LOADED = True


def _choice(name: str, allowed: set, default: str) -> str:
    value = os.getenv(name, default).strip().lower()
    if value not in allowed:
        logger.warning("Invalid %s=%r, falling back to %r", name, value, default)
        return default
    return value


def _number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, falling back to %r", name, raw, default)
        return default


def get_settings() -> Settings:
    """
    Build (once) and return the application settings.

    Returns:
        Settings: cached instance; call reset_settings() to re-read the environment
    """
    global _SETTINGS

    if _SETTINGS is not None:
        return _SETTINGS

    load_env_file()

    _SETTINGS = Settings(
        data_dir=os.getenv("DATA_DIR", "data"),
        storage_backend=_choice("STORAGE_BACKEND", {"file", "kv"}, "file"),
        kv_url=os.getenv("KV_REST_API_URL", "").strip(),
        kv_token=os.getenv("KV_REST_API_TOKEN", "").strip(),
        store_timeout=_number("STORE_TIMEOUT_SECONDS", 5.0, float),
        admin_password=os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
        edit_policy=_choice("EDIT_POLICY", EDIT_POLICIES, EDIT_POLICY_UNLIMITED),
        capacity_policy=_choice("CAPACITY_POLICY", CAPACITY_POLICIES, CAPACITY_POLICY_ADVISORY),
        refresh_interval=_number("REFRESH_INTERVAL_SECONDS", 15, int),
        edit_log_async=os.getenv("EDIT_LOG_ASYNC", "true").strip().lower() not in {"0", "false", "no"},
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    return _SETTINGS


def reset_settings() -> None:
    """Forget the cached settings instance."""
    global _SETTINGS
    _SETTINGS = None
