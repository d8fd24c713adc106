"""
Local Storage with File Locking

Persistent string key/value store holding the cart and the menu cache.
Values are strings, as in browser storage; callers serialise their own JSON.

Writes take an exclusive file lock and replace the file atomically. A
write that would push the file past its quota fails with
``StorageQuotaError`` and leaves the previous contents intact.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from barf_malai.core.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Storage could not be read or written."""


class StorageQuotaError(StorageError):
    """Write rejected because it exceeds the storage quota."""


class LocalStorage:
    """File-backed key/value storage."""

    def __init__(
        self,
        path: Path,
        quota_bytes: int = 5 * 1024 * 1024,
        lock_timeout: float = 10.0,
    ):
        self.path = Path(path)
        self.quota_bytes = quota_bytes
        self.lock_timeout = lock_timeout
        self._lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalStorage":
        return cls(
            settings.storage_path,
            quota_bytes=settings.storage_quota_bytes,
            lock_timeout=settings.storage_lock_timeout,
        )

    def _ensure_dir(self) -> None:
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.path.parent}")

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not hold a key/value object")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        encoded = json.dumps(data, ensure_ascii=False)
        size = len(encoded.encode("utf-8"))
        if size > self.quota_bytes:
            raise StorageQuotaError(
                f"Storage quota exceeded ({size} > {self.quota_bytes} bytes)"
            )
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_path.write_text(encoded, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or None."""
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        try:
            self._ensure_dir()
            with self._lock:
                data = self._read_all()
                data[key] = value
                self._write_all(data)
        except Timeout as e:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)") from e
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Stored {key} ({len(value)} chars)")

    def remove_item(self, key: str) -> None:
        """Delete ``key``; missing keys are ignored."""
        if not self.path.exists():
            return
        try:
            with self._lock:
                data = self._read_all()
                if data.pop(key, None) is not None:
                    self._write_all(data)
        except Timeout as e:
            raise StorageError(f"Lock timeout ({self.lock_timeout}s)") from e
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e
