from pathlib import Path

import pytest

from services.errors import StorageError
from services.preferences import SETTINGS_KEY, PreferencesStore
from storage.kv_store import KeyValueStore


def test_kv_store_set_and_get(tmp_path: Path) -> None:
    store = KeyValueStore(root_path=tmp_path)
    store.set("sensor_history", b"[]")

    assert (tmp_path / "sensor_history").read_bytes() == b"[]"
    assert "sensor_history" in store.keys()

    fresh_store = KeyValueStore(root_path=tmp_path)
    assert fresh_store.get("sensor_history") == b"[]"


def test_kv_store_missing_key_returns_none(tmp_path: Path) -> None:
    assert KeyValueStore(root_path=tmp_path).get("missing") is None
    assert KeyValueStore().get("missing") is None


def test_kv_store_remove(tmp_path: Path) -> None:
    store = KeyValueStore(root_path=tmp_path)
    store.set("key", b"value")

    store.remove("key")
    store.remove("key")

    assert store.get("key") is None
    assert not (tmp_path / "key").exists()


def test_kv_store_memory_only() -> None:
    store = KeyValueStore()
    store.set("key", b"value")

    assert store.get("key") == b"value"
    assert list(store.keys()) == ["key"]


def test_kv_store_rejects_path_like_keys(tmp_path: Path) -> None:
    store = KeyValueStore(root_path=tmp_path)

    with pytest.raises(StorageError):
        store.set("../escape", b"x")


def test_kv_store_write_failure_raises_storage_error(tmp_path: Path) -> None:
    store = KeyValueStore(root_path=tmp_path)
    (tmp_path / "blocked").mkdir()

    with pytest.raises(StorageError):
        store.set("blocked", b"x")


def test_preferences_remember_address(tmp_path: Path) -> None:
    PreferencesStore(KeyValueStore(root_path=tmp_path)).remember_address("10.0.0.5")

    reloaded = PreferencesStore(KeyValueStore(root_path=tmp_path))
    assert reloaded.last_address == "10.0.0.5"
    assert reloaded.update(theme="dark") == {"last_address": "10.0.0.5", "theme": "dark"}


def test_preferences_ignore_corrupt_payload() -> None:
    store = KeyValueStore()
    store.set(SETTINGS_KEY, b"{not json")
    preferences = PreferencesStore(store)

    assert preferences.load() == {}
    assert preferences.last_address is None
