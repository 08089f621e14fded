"""Filesystem blob backend."""

import asyncio
import logging
import os
import re
import tempfile
from typing import Optional

from ..common.logging_config import get_logger
from ..errors import PersistenceError
from .base import BlobBackend


class FileBlobBackend(BlobBackend):
    """Stores each blob as one file under a directory.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader sees either the old or the new blob.
    """

    name = "file"

    def __init__(self, directory: str, logger: Optional[logging.Logger] = None):
        """Initialize file backend.

        Args:
            directory: Directory holding the blob files (created if missing)
            logger: Optional logger instance
        """
        self.directory = directory
        self.logger = logger or get_logger("storage")
        os.makedirs(directory, exist_ok=True)

    def _path(self, key: str) -> str:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return os.path.join(self.directory, f"{safe}.json")

    def _read_sync(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def _write_sync(self, key: str, data: str) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.replace(tmp_path, self._path(key))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def _delete_sync(self, key: str) -> bool:
        path = self._path(key)
        if not os.path.exists(path):
            return False
        os.unlink(path)
        return True

    async def read(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read_sync, key)
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"File read error for {key}: {e}")
            raise PersistenceError(f"Failed to read blob '{key}': {e}") from e

    async def write(self, key: str, data: str) -> None:
        try:
            await asyncio.to_thread(self._write_sync, key, data)
        except OSError as e:
            self.logger.error(f"File write error for {key}: {e}")
            raise PersistenceError(f"Failed to write blob '{key}': {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._delete_sync, key)
        except OSError as e:
            self.logger.error(f"File delete error for {key}: {e}")
            raise PersistenceError(f"Failed to delete blob '{key}': {e}") from e

    async def health_check(self) -> bool:
        return os.path.isdir(self.directory) and os.access(self.directory, os.W_OK)
