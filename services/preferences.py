"""Small persisted app settings, currently the last address that connected."""

from __future__ import annotations

import json
import logging
from threading import Lock
from typing import Any, Dict, Optional

from services.errors import StorageError
from storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SETTINGS_KEY = "app_settings"


class PreferencesStore:

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._lock = Lock()

    def load(self) -> Dict[str, Any]:
        with self._lock:
            return self._load()

    def update(self, **values: Any) -> Dict[str, Any]:
        with self._lock:
            current = self._load()
            current.update(values)
            self.store.set(SETTINGS_KEY, json.dumps(current, sort_keys=True).encode("utf-8"))
            return current

    @property
    def last_address(self) -> Optional[str]:
        value = self.load().get("last_address")
        return value if isinstance(value, str) else None

    def remember_address(self, address: str) -> None:
        try:
            self.update(last_address=address)
        except StorageError as exc:
            logger.warning(
                "Unable to remember device address",
                extra={"address": address, "reason": str(exc)},
            )

    def _load(self) -> Dict[str, Any]:
        try:
            raw = self.store.get(SETTINGS_KEY)
            data = json.loads(raw or b"{}")
        except (StorageError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("Ignoring unreadable app settings", extra={"reason": str(exc)})
            return {}
        return data if isinstance(data, dict) else {}
