"""
Storefront environment

Injected stand-ins for what a browser host provides: durable storage that
survives restarts, ephemeral per-session storage, and the current location.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a storage backend cannot read or write"""
    pass


class Storage:
    """String key/value storage"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(Storage):
    """Process-local storage, used for session-scoped values and in tests"""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileStorage(Storage):
    """
    Durable storage backed by a single JSON file.

    The file holds one object mapping keys to string values. Every write
    rewrites the whole file; there is no locking between processes, so two
    writers sharing a file overwrite each other (last write wins).
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


@dataclass
class Environment:
    """Host capabilities handed to a storefront session"""
    local_storage: Storage = field(default_factory=MemoryStorage)
    session_storage: Storage = field(default_factory=MemoryStorage)
    location: str = "/"

    @property
    def pathname(self) -> str:
        """Path part of the current location"""
        return urlparse(self.location).path or "/"
