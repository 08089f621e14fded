"""Pytest configuration and fixtures."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from shortlink.clicks import ClickRecorder, MockLocationResolver
from shortlink.common.logging_config import setup_logging
from shortlink.service import RegistryService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.storage import MemoryBlobBackend, RecordStore


class FakeClock:
    """Controllable clock; call it to get the current time."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def backend():
    return MemoryBlobBackend()


@pytest.fixture
def store(backend, logger):
    return RecordStore(backend, logger=logger.getChild("store"))


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6, rng=random.Random(1234))


@pytest.fixture
def recorder(store, clock):
    return ClickRecorder(
        store,
        location_resolver=MockLocationResolver(rng=random.Random(7)),
        clock=clock,
    )


@pytest.fixture
def service(store, short_code_generator, recorder, clock, logger) -> RegistryService:
    """Create service instance."""
    return RegistryService(
        store=store,
        short_code_generator=short_code_generator,
        recorder=recorder,
        base_url="http://testserver",
        clock=clock,
        logger=logger.getChild("service"),
    )


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
