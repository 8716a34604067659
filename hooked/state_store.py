"""
Durable state persistence for hooked.

Every component coordinates through small JSON documents under the hooked
home directory. This module handles:
- Reading documents, treating missing or corrupted files as absent
- Atomic writes (temp file + rename) so concurrent readers never see partial data
- Deleting and listing documents
- Advisory file locks around read-modify-write sequences
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from filelock import FileLock, Timeout

from hooked.config import HookedConfig
from hooked.utils.fs import (
    FileSystemError,
    ensure_dir,
    file_exists,
    list_files,
    read_file,
    remove_file,
    safe_write,
)

LOCK_TIMEOUT_SECONDS = 10


class StateStoreError(Exception):
    """Raised when a state write, delete or lock fails."""
    pass


class StateStore:
    """
    JSON document store rooted at the hooked home directory.

    Reads never raise: an unreadable document is logged and reported as
    absent. Writes and deletes raise StateStoreError so callers can decide
    how to degrade.
    """

    def __init__(
        self,
        config: HookedConfig,
        logger: Optional[logging.Logger] = None,
        lock_timeout: float = LOCK_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize the state store.

        Args:
            config: HookedConfig with paths configured.
            logger: Optional logger for diagnostics.
            lock_timeout: Seconds to wait for an advisory lock.
        """
        self._config = config
        self._logger = logger or logging.getLogger(__name__)
        self._lock_timeout = lock_timeout

    @property
    def config(self) -> HookedConfig:
        return self._config

    @property
    def root(self) -> Path:
        return self._config.home_path

    def read(self, path: Path) -> Optional[dict[str, Any]]:
        """
        Load a JSON document.

        Args:
            path: Document path.

        Returns:
            The decoded mapping, or None if the file is missing or invalid.
        """
        if not file_exists(path):
            return None

        try:
            data = json.loads(read_file(path))
        except json.JSONDecodeError as e:
            self._logger.warning("Corrupted state file %s: %s", path, e)
            return None
        except FileSystemError as e:
            self._logger.warning("Unreadable state file %s: %s", path, e)
            return None

        if not isinstance(data, dict):
            self._logger.warning("Ignoring state file %s: expected an object", path)
            return None
        return data

    def write(self, path: Path, data: dict[str, Any]) -> None:
        """
        Replace a JSON document atomically.

        Raises:
            StateStoreError: If the write fails.
        """
        try:
            safe_write(path, json.dumps(data, indent=2))
        except FileSystemError as e:
            raise StateStoreError(f"Failed to save {path}: {e}")

    def write_text(self, path: Path, content: str) -> None:
        """Replace a plain-text marker file atomically."""
        try:
            safe_write(path, content)
        except FileSystemError as e:
            raise StateStoreError(f"Failed to save {path}: {e}")

    def read_text(self, path: Path) -> Optional[str]:
        """Read a marker file, or None if it is missing or unreadable."""
        if not file_exists(path):
            return None
        try:
            return read_file(path).strip()
        except FileSystemError as e:
            self._logger.warning("Unreadable marker %s: %s", path, e)
            return None

    def exists(self, path: Path) -> bool:
        return file_exists(path)

    def delete(self, path: Path) -> bool:
        """
        Delete a document.

        Returns:
            True if it was deleted, False if it did not exist.

        Raises:
            StateStoreError: If the file exists but cannot be removed.
        """
        try:
            return remove_file(path)
        except FileSystemError as e:
            raise StateStoreError(str(e))

    def list(self, directory: Path, pattern: str = "*.json") -> list[Path]:
        """List documents in a directory (empty if the directory is missing)."""
        return list_files(directory, pattern)

    @contextmanager
    def lock(self, name: str) -> Iterator[None]:
        """
        Hold an advisory lock named `name` for the duration of the block.

        Raises:
            StateStoreError: If the lock cannot be acquired in time.
        """
        try:
            lock_dir = ensure_dir(self._config.locks_path)
        except FileSystemError as e:
            raise StateStoreError(str(e))

        lock = FileLock(str(lock_dir / f"{name}.lock"), timeout=self._lock_timeout)
        try:
            lock.acquire()
        except Timeout:
            raise StateStoreError(f"Timeout acquiring lock {name}")

        try:
            yield
        finally:
            lock.release()
