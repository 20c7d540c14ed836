from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from services.errors import StorageError
from settings import get_settings

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Byte blobs under string keys, mirrored to one file per key when rooted."""

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self._values: Dict[str, bytes] = {}
        self.root_path = root_path
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            data = self._values.get(key)
            if data is not None:
                return data

        if self.root_path:
            path = self._path_for(key)
            try:
                data = path.read_bytes()
            except FileNotFoundError:
                return None
            except OSError as exc:
                raise StorageError(f"Unable to read key {key!r}: {exc}") from exc
            with self._lock:
                self._values[key] = data
            return data

        return None

    def set(self, key: str, data: bytes) -> None:
        with self._lock:
            if self.root_path:
                path = self._path_for(key)
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_bytes(data)
                except OSError as exc:
                    raise StorageError(f"Unable to write key {key!r}: {exc}") from exc
            self._values[key] = data

    def remove(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)
            if self.root_path:
                try:
                    self._path_for(key).unlink(missing_ok=True)
                except OSError as exc:
                    raise StorageError(f"Unable to remove key {key!r}: {exc}") from exc
        logger.debug("Removed stored key %s", key)

    def keys(self) -> Iterable[str]:
        with self._lock:
            keys = set(self._values)

        if self.root_path:
            for path in self.root_path.iterdir():
                if path.is_file():
                    keys.add(path.name)

        return sorted(keys)

    def _path_for(self, key: str) -> Path:
        assert self.root_path is not None
        if not key or "/" in key or key in {".", ".."}:
            raise StorageError(f"Unsupported storage key {key!r}.")
        return self.root_path / key


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> KeyValueStore:
    settings = get_settings()
    store_root = settings.store_root_path if root_path is None else root_path
    path = Path(store_root) if store_root else None
    return KeyValueStore(root_path=path)
