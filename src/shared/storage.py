"""Key-value storage in the shape of the browser's Web Storage API.

Two scopes exist: *local* storage survives restarts (a JSON file when
``STOREFRONT_STORAGE_DIR`` is set), *session* storage lives as long as the
process. Values are strings; callers serialize their own payloads.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path


class KeyValueStore(ABC):
    @abstractmethod
    def get_item(self, key: str) -> str | None: ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove_item(self, key: str) -> None: ...


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """All keys of one scope kept in a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        return json.loads(self.path.read_text(encoding="utf-8") or "{}")

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


_local_storage: KeyValueStore | None = None
_session_storage: KeyValueStore | None = None


def get_local_storage() -> KeyValueStore:
    """Return the durable store. File-backed when STOREFRONT_STORAGE_DIR is set."""
    global _local_storage
    if _local_storage is None:
        storage_dir = os.environ.get("STOREFRONT_STORAGE_DIR")
        if storage_dir:
            _local_storage = JsonFileStore(Path(storage_dir) / "local_storage.json")
        else:
            _local_storage = MemoryStore()
    return _local_storage


def get_session_storage() -> KeyValueStore:
    global _session_storage
    if _session_storage is None:
        _session_storage = MemoryStore()
    return _session_storage


def set_storage(local: KeyValueStore | None = None, session: KeyValueStore | None = None) -> None:
    """Override the active stores (useful for tests)."""
    global _local_storage, _session_storage
    if local is not None:
        _local_storage = local
    if session is not None:
        _session_storage = session


def reset_storage() -> None:
    global _local_storage, _session_storage
    _local_storage = None
    _session_storage = None
