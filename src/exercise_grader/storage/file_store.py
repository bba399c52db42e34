"""
Durable key-value storage backed by JSON files.

Architecture:
    data/
    ├── {key}.json      # One record per key
    └── {key}.lock      # Advisory lock, reused across writes

Writes are atomic (temp file, fsync, rename) and bounded by a byte quota,
mirroring the capacity limits of browser local storage.
"""

import errno
import fcntl
import json
import os
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from loguru import logger

from exercise_grader.config.constants import DATA_DIR, DEFAULT_STORAGE_QUOTA_BYTES
from exercise_grader.core.exceptions import SerializationError, StorageCapacityError, StorageError

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")
_CAPACITY_ERRNOS = {errno.ENOSPC, errno.EDQUOT, errno.EFBIG}


class KeyValueFileStore:
    """
    Key-value storage manager.

    Each key maps to one JSON document under base_dir.
    """

    def __init__(self, base_dir: str = None, quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES):
        self.base_dir = Path(base_dir or DATA_DIR)
        self.quota_bytes = quota_bytes

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}.json"

    @contextmanager
    def _locked(self, key: str) -> Iterator[None]:
        """Exclusive advisory lock for one key."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        lock_path = self.base_dir / f"{key}.lock"
        lock_fd = os.open(str(lock_path), os.O_CREAT | os.O_WRONLY, 0o644)
        try:
            fcntl.flock(lock_fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)
        finally:
            os.close(lock_fd)

    # ==================== READ ====================

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def get_raw(self, key: str) -> Optional[bytes]:
        """Raw stored bytes, or None when the key is absent."""
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def get(self, key: str) -> Optional[Any]:
        """
        Load and decode a value.

        Raises:
            SerializationError: The stored bytes are not valid UTF-8 JSON
        """
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"Invalid JSON for key {key}: {e}", {"key": key}) from e

    # ==================== WRITE ====================

    def set(self, key: str, value: Any) -> int:
        """
        Encode and store a value atomically.

        Args:
            key: Storage key
            value: JSON-serializable value

        Returns:
            Number of bytes written

        Raises:
            StorageCapacityError: Value exceeds the quota or the disk is full
        """
        try:
            payload = json.dumps(value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Value for key {key} is not serializable: {e}") from e

        if len(payload) > self.quota_bytes:
            raise StorageCapacityError(
                f"Storage quota exceeded for key {key}",
                {"size": len(payload), "quota": self.quota_bytes},
            )

        path = self._path(key)
        temp_file = path.with_suffix(".tmp")
        with self._locked(key):
            try:
                with open(temp_file, "wb") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                temp_file.replace(path)  # Atomic on POSIX
            except OSError as e:
                temp_file.unlink(missing_ok=True)
                if e.errno in _CAPACITY_ERRNOS:
                    raise StorageCapacityError(f"Disk full while writing key {key}: {e}") from e
                raise StorageError(f"Failed to write key {key}: {e}") from e

        logger.debug(f"Stored {len(payload)} bytes under key {key}")
        return len(payload)

    def remove(self, key: str) -> bool:
        """Delete a key. Returns False if it did not exist."""
        path = self._path(key)
        with self._locked(key):
            if not path.exists():
                return False
            path.unlink()
        return True
