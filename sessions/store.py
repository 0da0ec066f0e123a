"""
Key-value storage backends.

Every value is a text blob stored under a fixed key. Writes replace the whole
value, so a reader never observes a partially written collection.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
import json
import os
import tempfile

import redis

from app.utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Durable string slots addressed by key."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, used by tests and the ``memory`` backend."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStore):
    """
    All slots kept in one JSON object on disk.

    Updates are written to a temporary file in the same directory and moved
    over the document with ``os.replace``.
    """

    def __init__(self, path: Path):
        """
        Initialize file store.

        Args:
            path: Location of the JSON document (created on first write)
        """
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable store document {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Store document {self.path} is not a JSON object")
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)


class RedisKeyValueStore(KeyValueStore):
    """Slots stored as plain redis strings under a common prefix."""

    def __init__(self, client: redis.Redis, key_prefix: str = "laptimer:"):
        """
        Initialize redis store.

        Args:
            client: Redis client (``decode_responses`` may be on or off)
            key_prefix: Prefix applied to every key
        """
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "laptimer:") -> "RedisKeyValueStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)

    def delete(self, key: str) -> None:
        self.client.delete(self._key(key))


def create_store(storage_settings) -> KeyValueStore:
    """
    Build the configured backend.

    Args:
        storage_settings: ``config.settings.StorageSettings`` instance

    Returns:
        Key-value store instance
    """
    backend = storage_settings.backend
    if backend == "memory":
        store: KeyValueStore = MemoryKeyValueStore()
    elif backend == "redis":
        store = RedisKeyValueStore.from_url(storage_settings.redis_url, storage_settings.key_prefix)
    elif backend == "json":
        store = JsonFileKeyValueStore(Path(storage_settings.path))
    else:
        raise ValueError(f"Invalid storage backend: {backend}")

    logger.info(f"Using {backend} key-value store")
    return store
