"""Tests for click recording."""

import random
from datetime import timedelta

import pytest
from shortlink.clicks import ClickRecorder, MockLocationResolver
from shortlink.errors import PersistenceError
from shortlink.models import UrlRecord
from shortlink.storage import FileBlobBackend, MemoryBlobBackend, RecordStore


class BrokenWriteBackend(MemoryBlobBackend):
    fail_writes = False

    async def write(self, key, data):
        if self.fail_writes:
            raise PersistenceError("write refused")
        await super().write(key, data)


async def seed(store, clock, short_code="abc123"):
    record = UrlRecord(
        id=f"id_{short_code}",
        original_url="https://example.com",
        short_code=short_code,
        created_at=clock(),
        expires_at=clock() + timedelta(minutes=30),
        validity_minutes=30,
    )
    await store.put(record)
    return record


@pytest.mark.asyncio
class TestClickRecorder:
    """Test click recording."""

    async def test_record_appends_click(self, store, recorder, clock):
        await seed(store, clock)

        assert await recorder.record("abc123", source="direct", user_agent="pytest", ip="10.1.2.3")

        record = await store.get("abc123")
        assert len(record.clicks) == 1
        click = record.clicks[0]
        assert click.source == "direct"
        assert click.timestamp == clock()
        assert click.user_agent == "pytest"
        assert click.ip == "10.1.2.3"
        assert click.location in MockLocationResolver.LOCATIONS

    async def test_clicks_keep_recording_order(self, store, recorder, clock):
        await seed(store, clock)

        for source in ["direct", "statistics_page", "direct"]:
            clock.advance(seconds=1)
            await recorder.record("abc123", source=source)

        record = await store.get("abc123")
        assert [click.source for click in record.clicks] == ["direct", "statistics_page", "direct"]
        timestamps = [click.timestamp for click in record.clicks]
        assert timestamps == sorted(timestamps)

    async def test_existing_clicks_unchanged(self, store, recorder, clock):
        await seed(store, clock)
        await recorder.record("abc123", source="first")
        before = (await store.get("abc123")).clicks[0]

        clock.advance(minutes=1)
        await recorder.record("abc123", source="second")

        after = await store.get("abc123")
        assert after.clicks[0] == before
        assert len(after.clicks) == 2

    async def test_unknown_code_returns_false(self, store, recorder):
        assert await recorder.record("missing") is False
        assert await store.list() == []

    async def test_persistence_failure_returns_false(self, clock):
        backend = BrokenWriteBackend()
        store = RecordStore(backend)
        await seed(store, clock)
        backend.fail_writes = True

        recorder = ClickRecorder(store, clock=clock)
        assert await recorder.record("abc123") is False

        backend.fail_writes = False
        assert (await store.get("abc123")).clicks == []

    async def test_undecodable_file_blob_returns_false(self, tmp_path, clock):
        backend = FileBlobBackend(str(tmp_path))
        store = RecordStore(backend)
        await seed(store, clock)
        with open(backend._path(store.key), "wb") as f:
            f.write(b"\xff\xfe[not utf8")

        recorder = ClickRecorder(store, clock=clock)
        assert await recorder.record("abc123") is False


class TestMockLocationResolver:
    def test_resolves_to_known_city(self):
        resolver = MockLocationResolver(rng=random.Random(3))
        assert resolver.resolve("1.2.3.4") in MockLocationResolver.LOCATIONS

    def test_custom_locations(self):
        resolver = MockLocationResolver(locations=["Paris, FR"])
        assert resolver.resolve(None) == "Paris, FR"
