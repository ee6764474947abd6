"""
Durable key/value storage for client state.

Values are JSON-serialized under string keys. A missing or undecodable key
reads as None so callers fall back to their empty defaults.
"""
import copy
import json
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from mall_client.logging import get_logger

logger = get_logger(__name__)


class KeyValueStorage(Protocol):
    """Minimal storage interface used by the stores."""

    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...

    def clear(self) -> None: ...


@dataclass(frozen=True)
class StorageKeys:
    """Storage key names, optionally namespaced per client surface."""
    namespace: str = ""

    def _key(self, name: str) -> str:
        return f"{self.namespace}:{name}" if self.namespace else name

    @property
    def cart_items(self) -> str:
        return self._key("cartItems")

    @property
    def token(self) -> str:
        return self._key("token")

    @property
    def user_info(self) -> str:
        return self._key("userInfo")


class MemoryStorage:
    """In-process storage. Values are JSON round-tripped like a real backend."""

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStorage:
    """
    All keys kept in one JSON document on disk.

    Every write rewrites the file through a temp file and os.replace, so a
    crash mid-write leaves the previous document intact.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data = self._load()

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Unreadable storage file %s, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s is not a JSON object, starting empty", self.path)
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._data.get(key)
            # Callers must not reach the unflushed cache
            return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            # Serialize first so a bad value never reaches the file
            self._data[key] = json.loads(json.dumps(value, ensure_ascii=False))
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if key in self._data:
                del self._data[key]
                self._flush()

    def clear(self) -> None:
        with self._lock:
            self._data = {}
            self._flush()


def create_storage(path: Optional[str] = None) -> KeyValueStorage:
    """Return file-backed storage for a path, in-memory storage otherwise."""
    if path:
        return JsonFileStorage(path)
    return MemoryStorage()


__all__ = [
    "KeyValueStorage",
    "StorageKeys",
    "MemoryStorage",
    "JsonFileStorage",
    "create_storage",
]
