"""
Durable key-value storage for the client session.

Holds the bearer token under a fixed key (``accessToken`` by default) plus any
other small values the client wants to keep across restarts (e.g. the refresh
cookie jar). Mirrors browser ``localStorage`` semantics: values survive process
restarts but not an explicit ``clear()``.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class TokenStorage:
    """Interface for session storage backends."""

    def get(self, key: str) -> Any | None:
        """Return the stored value for ``key`` or None."""
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""
        raise NotImplementedError

    def remove(self, key: str) -> None:
        """Remove ``key``. Removing a missing key is a no-op."""
        raise NotImplementedError

    def clear(self) -> None:
        """Remove every stored value."""
        raise NotImplementedError


class MemoryTokenStorage(TokenStorage):
    """In-process storage; used in tests and when persistence is not wanted."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()


class FileTokenStorage(TokenStorage):
    """
    JSON-file storage.

    The whole file is read on every access so that several client processes
    sharing the same file observe each other's writes. Writes go through a
    temporary file and ``os.replace`` so a crash never leaves a half-written
    store behind. The file is created with owner-only permissions because it
    holds credentials.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        """Location of the backing file."""
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise StorageError(f"Unable to read session store {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Session store {self._path} is not a JSON object")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Unable to write session store {self._path}: {e}") from e

    def get(self, key: str) -> Any | None:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)
        logger.debug("session_store_set key=%s", key)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
            logger.debug("session_store_remove key=%s", key)

    def clear(self) -> None:
        if self._path.exists():
            self._write({})
