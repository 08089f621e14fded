"""In-process blob backend."""

from typing import Dict, Optional

from .base import BlobBackend


class MemoryBlobBackend(BlobBackend):
    """Keeps blobs in a dictionary; contents are lost when the process exits."""

    name = "memory"

    def __init__(self):
        self._blobs: Dict[str, str] = {}

    async def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    async def write(self, key: str, data: str) -> None:
        self._blobs[key] = data

    async def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None
