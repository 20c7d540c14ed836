"""Bounded, most-recent-first history of readings."""

from __future__ import annotations

import logging
from threading import Lock
from typing import List
from uuid import uuid4

from pydantic import TypeAdapter, ValidationError

from app.schemas import HistoryEntry
from models.records import Reading
from services.errors import StorageError
from storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "sensor_history"
HISTORY_LIMIT = 10

_entries_adapter = TypeAdapter(List[HistoryEntry])


class HistoryStore:

    def __init__(self, store: KeyValueStore, limit: int = HISTORY_LIMIT) -> None:
        self.store = store
        self.limit = limit
        self._lock = Lock()

    def append(self, reading: Reading) -> HistoryEntry:
        entry = HistoryEntry(
            id=str(uuid4()),
            temperature=reading.temperature,
            humidity=reading.humidity,
            movement_alert=reading.movement_alert,
            timestamp=reading.observed_at,
            date=reading.observed_at.astimezone().date().isoformat(),
        )
        with self._lock:
            entries = [entry, *self._load()][: self.limit]
            self.store.set(HISTORY_KEY, _entries_adapter.dump_json(entries))
        logger.debug("Stored reading", extra={"entry_count": len(entries)})
        return entry

    def all(self) -> list[HistoryEntry]:
        with self._lock:
            return self._load()

    def clear(self) -> None:
        with self._lock:
            self.store.remove(HISTORY_KEY)
        logger.info("History cleared")

    def _load(self) -> list[HistoryEntry]:
        try:
            raw = self.store.get(HISTORY_KEY)
        except StorageError as exc:
            logger.warning("Unable to read history", extra={"reason": str(exc)})
            return []
        if not raw:
            return []
        try:
            return _entries_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Discarding unreadable history payload",
                extra={"reason": f"{exc.error_count()} validation error(s)"},
            )
            return []
