# memento/store.py
# Key-value persistence port + in-memory and JSON-file adapters

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from . import metrics
from .errors import StorageError
from .utils import ensure_dir, read_json, write_json

SETTINGS_KEY = "life-settings"
GOALS_KEY = "life-goals"


@runtime_checkable
class PersistenceAdapter(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryAdapter:
    """Dict-backed adapter. `fail_writes` makes every set() raise StorageError."""

    def __init__(self, initial: Optional[Dict[str, str]] = None, *, fail_writes: bool = False) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self.fail_writes = fail_writes
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            metrics.observe_storage_error("set")
            raise StorageError(f"write rejected for key {key!r}", key=key)
        with self._lock:
            self._data[key] = str(value)

    def keys(self):
        with self._lock:
            return list(self._data.keys())


class FileAdapter:
    """
    Single JSON object of key -> string on disk.

    Directory layout:
      data_dir/
        state.json   # {"life-settings": "...", "life-goals": "..."}

    Every set() rewrites the file atomically (temp file + replace) before
    returning, so a following get() (or a new adapter) sees the new value.
    An unreadable file is treated as empty.
    """

    def __init__(self, data_dir: Path | str, *, filename: str = "state.json") -> None:
        self._dir = ensure_dir(Path(data_dir))
        self._path = self._dir / filename
        self._lock = threading.RLock()
        self._data: Dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        raw = read_json(self._path, default={})
        if not isinstance(raw, dict):
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = dict(self._data)
            data[key] = str(value)
            try:
                write_json(self._path, data)
            except OSError as e:
                metrics.observe_storage_error("set")
                raise StorageError(f"could not write {self._path}: {e}", key=key) from e
            self._data = data


__all__ = ["PersistenceAdapter", "MemoryAdapter", "FileAdapter", "SETTINGS_KEY", "GOALS_KEY"]
