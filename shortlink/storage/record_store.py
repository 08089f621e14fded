"""Record store: owns the persisted collection of URL records."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional, Set

from ..common.logging_config import get_logger
from ..errors import PersistenceError, ShortCodeTaken
from ..models import UrlRecord
from .base import BlobBackend

DEFAULT_STORAGE_KEY = "shortlink:records"


class StoreSession:
    """Working copy of the collection used while the store lock is held.

    Changes are written back as one blob when the owning
    ``RecordStore.exclusive()`` block exits without an exception.
    """

    def __init__(self, records: Dict[str, UrlRecord]):
        self._records = records
        self.dirty = False

    @property
    def records(self) -> Dict[str, UrlRecord]:
        return self._records

    def get(self, short_code: str) -> Optional[UrlRecord]:
        for record in self._records.values():
            if record.short_code == short_code:
                return record
        return None

    def get_by_id(self, record_id: str) -> Optional[UrlRecord]:
        return self._records.get(record_id)

    def list(self) -> List[UrlRecord]:
        return list(self._records.values())

    def taken_codes(self) -> Set[str]:
        """Every generated and custom code held by a stored record."""
        taken: Set[str] = set()
        for record in self._records.values():
            taken |= record.codes
        return taken

    def put(self, record: UrlRecord) -> None:
        """Upsert by id, refusing a short code owned by another record."""
        for other in self._records.values():
            if other.id != record.id and record.short_code in other.codes:
                raise ShortCodeTaken(
                    "Short code already exists",
                    {"short_code": record.short_code},
                )
        self._records[record.id] = record
        self.dirty = True

    def delete(self, record_id: str) -> bool:
        if self._records.pop(record_id, None) is None:
            return False
        self.dirty = True
        return True

    def sweep_expired(self, now: datetime) -> int:
        expired = [r.id for r in self._records.values() if r.expires_at < now]
        for record_id in expired:
            del self._records[record_id]
        if expired:
            self.dirty = True
        return len(expired)

    def clear(self) -> int:
        count = len(self._records)
        self._records.clear()
        self.dirty = True
        return count


class RecordStore:
    """Exclusive owner of the URL record collection.

    The collection is serialized as a JSON array into one blob. Every
    mutation runs a read-modify-write of the whole blob under a single
    asyncio lock; reads load the last completely written blob and never
    take the lock.
    """

    def __init__(
        self,
        backend: BlobBackend,
        key: str = DEFAULT_STORAGE_KEY,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize record store.

        Args:
            backend: Persistence backend holding the blob
            key: Name of the blob holding the collection
            logger: Optional logger
        """
        self.backend = backend
        self.key = key
        self.logger = logger or get_logger("store")
        self._lock = asyncio.Lock()

    async def _load(self) -> Dict[str, UrlRecord]:
        raw = await self.backend.read(self.key)
        if not raw:
            return {}

        try:
            items = json.loads(raw)
            records = [UrlRecord.from_dict(item) for item in items]
        except (ValueError, KeyError, TypeError) as e:
            self.logger.error(f"Stored collection under '{self.key}' is corrupt: {e}")
            raise PersistenceError(f"Stored collection is corrupt: {e}") from e

        return {record.id: record for record in records}

    async def _save(self, records: Dict[str, UrlRecord]) -> None:
        payload = json.dumps([record.to_dict() for record in records.values()])
        await self.backend.write(self.key, payload)
        self.logger.debug(f"Persisted {len(records)} records")

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[StoreSession]:
        """Hold the store lock for a check-then-act sequence.

        Yields:
            StoreSession over a fresh copy of the collection; written back
            on clean exit if anything changed
        """
        async with self._lock:
            session = StoreSession(await self._load())
            yield session
            if session.dirty:
                await self._save(session.records)

    async def get(self, short_code: str) -> Optional[UrlRecord]:
        """Get a record by short code, expired or not.

        Args:
            short_code: The short code to lookup

        Returns:
            The record if found, None otherwise
        """
        return StoreSession(await self._load()).get(short_code)

    async def get_by_id(self, record_id: str) -> Optional[UrlRecord]:
        return (await self._load()).get(record_id)

    async def list(self) -> List[UrlRecord]:
        """List every stored record in insertion order."""
        return list((await self._load()).values())

    async def taken_codes(self) -> Set[str]:
        return StoreSession(await self._load()).taken_codes()

    async def put(self, record: UrlRecord) -> None:
        """Insert or replace a record by id.

        Raises:
            ShortCodeTaken: If another record already holds the short code
            PersistenceError: If the backend fails
        """
        async with self.exclusive() as session:
            session.put(record)

    async def delete(self, record_id: str) -> bool:
        """Delete a record by id.

        Returns:
            True if a record existed and was removed
        """
        async with self.exclusive() as session:
            removed = session.delete(record_id)
        if removed:
            self.logger.info(f"Deleted record {record_id}")
        return removed

    async def sweep_expired(self, now: datetime) -> int:
        """Delete every record whose expiry is before ``now``.

        Returns:
            Number of records removed
        """
        async with self.exclusive() as session:
            removed = session.sweep_expired(now)
        if removed:
            self.logger.info(f"Swept {removed} expired records")
        return removed

    async def clear(self) -> int:
        """Remove every record; returns how many were removed."""
        async with self.exclusive() as session:
            removed = session.clear()
        self.logger.info(f"Cleared {removed} records")
        return removed

    async def health_check(self) -> bool:
        return await self.backend.health_check()

    async def close(self) -> None:
        await self.backend.close()
