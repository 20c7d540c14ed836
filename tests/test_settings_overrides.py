from __future__ import annotations

from typing import Iterable

from services.controller import build_default_controller
from settings import get_settings
from storage.kv_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    store_root = tmp_path / "store"

    monkeypatch.setenv("STORE_ROOT_PATH", str(store_root))
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("DEVICE_READ_TIMEOUT", "4")
    monkeypatch.setenv("DEVICE_RESET_TIMEOUT", "1.5")
    monkeypatch.setenv("RELAY_COLLECTOR_URL", "http://collector.test/hook")
    monkeypatch.setenv("RELAY_TIMEOUT", "7")
    monkeypatch.setenv("DEVICE_DEFAULT_ADDRESS", "10.0.0.42")
    monkeypatch.setenv("CONNECTION_NOTIFICATIONS", "yes")

    caches = (get_settings, build_default_store, build_default_controller)
    _clear_caches(caches)

    store = build_default_store()
    controller = build_default_controller()

    try:
        assert store.root_path == store_root
        assert controller.poll_interval == 2.5
        assert controller.device.read_timeout == 4.0
        assert controller.device.reset_timeout == 1.5
        assert controller.relay.collector_url == "http://collector.test/hook"
        assert controller.relay.timeout == 7.0
        assert controller.default_address == "10.0.0.42"
        assert controller.connection_notifications is True
        assert controller.history.store is store
    finally:
        controller.shutdown()
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("POLL_INTERVAL_SECONDS", "soon")
    monkeypatch.setenv("RELAY_TIMEOUT", "-3")
    monkeypatch.setenv("STORE_ROOT_PATH", "   ")
    monkeypatch.setenv("CONNECTION_NOTIFICATIONS", "maybe")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.poll_interval == 5.0
        assert settings.relay_timeout == 10.0
        assert settings.store_root_path is None
        assert settings.connection_notifications is False
        assert settings.log_level == "DEBUG"
        assert settings.device_read_timeout == 5.0
        assert settings.device_reset_timeout == 3.0
    finally:
        get_settings.cache_clear()
