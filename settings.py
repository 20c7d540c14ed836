from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DEFAULT_ADDRESS_ENV = "DEVICE_DEFAULT_ADDRESS"
_READ_TIMEOUT_ENV = "DEVICE_READ_TIMEOUT"
_RESET_TIMEOUT_ENV = "DEVICE_RESET_TIMEOUT"
_POLL_INTERVAL_ENV = "POLL_INTERVAL_SECONDS"
_COLLECTOR_URL_ENV = "RELAY_COLLECTOR_URL"
_RELAY_TIMEOUT_ENV = "RELAY_TIMEOUT"
_STORE_ROOT_ENV = "STORE_ROOT_PATH"
_CONNECTION_NOTIFICATIONS_ENV = "CONNECTION_NOTIFICATIONS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    default_address: str
    device_read_timeout: float
    device_reset_timeout: float
    poll_interval: float
    collector_url: str
    relay_timeout: float
    store_root_path: Optional[str]
    connection_notifications: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_seconds(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        default_address=_read_str_env(_DEFAULT_ADDRESS_ENV, "192.168.1.108"),
        device_read_timeout=_read_seconds(_READ_TIMEOUT_ENV, 5.0),
        device_reset_timeout=_read_seconds(_RESET_TIMEOUT_ENV, 3.0),
        poll_interval=_read_seconds(_POLL_INTERVAL_ENV, 5.0),
        collector_url=_read_str_env(_COLLECTOR_URL_ENV, "http://localhost:9000/collect"),
        relay_timeout=_read_seconds(_RELAY_TIMEOUT_ENV, 10.0),
        store_root_path=_read_optional_env(_STORE_ROOT_ENV, "./tmp/monitor_store"),
        connection_notifications=_read_flag(_CONNECTION_NOTIFICATIONS_ENV, False),
        log_level=_read_log_level("INFO"),
    )
