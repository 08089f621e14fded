"""Abstract base class for blob persistence backends."""

from abc import ABC, abstractmethod
from typing import Optional


class BlobBackend(ABC):
    """Byte/string level get/set over named blobs.

    The record store keeps the whole collection in one blob and rewrites it
    on every mutation, so a backend only needs whole-value reads and writes.
    Implementations raise PersistenceError on failure.
    """

    name = "blob"

    @abstractmethod
    async def read(self, key: str) -> Optional[str]:
        """Read a blob.

        Args:
            key: Blob name

        Returns:
            The stored string, or None if the blob does not exist
        """
        pass

    @abstractmethod
    async def write(self, key: str, data: str) -> None:
        """Replace a blob with new contents.

        Args:
            key: Blob name
            data: Full contents to store
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a blob.

        Args:
            key: Blob name

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    async def health_check(self) -> bool:
        """Check if the backend is reachable.

        Returns:
            True if healthy, False otherwise
        """
        return True

    async def close(self) -> None:
        """Release backend resources."""
        pass
