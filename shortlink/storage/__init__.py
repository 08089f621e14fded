"""Persistence layer for the shortlink registry."""

import logging
from typing import Optional

from .base import BlobBackend
from .memory import MemoryBlobBackend
from .file import FileBlobBackend
from .redis_blob import RedisBlobBackend
from .record_store import RecordStore, StoreSession, DEFAULT_STORAGE_KEY

BACKENDS = ("memory", "file", "redis")


def create_backend(
    kind: str = "memory",
    storage_path: Optional[str] = None,
    redis_url: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
) -> BlobBackend:
    """Build a blob backend from configuration values.

    Args:
        kind: One of "memory", "file", "redis"
        storage_path: Directory for the file backend
        redis_url: Connection URL for the redis backend
        logger: Optional logger

    Returns:
        Backend instance
    """
    kind = kind.lower()
    if kind == "memory":
        return MemoryBlobBackend()
    if kind == "file":
        if not storage_path:
            raise ValueError("storage_path is required for the file backend")
        return FileBlobBackend(storage_path, logger=logger)
    if kind == "redis":
        if not redis_url:
            raise ValueError("redis_url is required for the redis backend")
        return RedisBlobBackend(redis_url=redis_url, logger=logger)
    raise ValueError(f"Unknown storage backend '{kind}' (expected one of {', '.join(BACKENDS)})")


__all__ = [
    "BlobBackend",
    "MemoryBlobBackend",
    "FileBlobBackend",
    "RedisBlobBackend",
    "RecordStore",
    "StoreSession",
    "DEFAULT_STORAGE_KEY",
    "BACKENDS",
    "create_backend",
]
