"""Click recording for resolved short codes."""

import logging
import random
from typing import Optional, Sequence

from .common.logging_config import get_logger
from .errors import RegistryError
from .models import ClickEvent, Clock, utc_now
from .storage.record_store import RecordStore


class LocationResolver:
    """Maps a client IP to a coarse location label.

    Real geolocation is not provided; subclasses can plug one in.
    """

    def resolve(self, ip: Optional[str]) -> str:
        raise NotImplementedError


class MockLocationResolver(LocationResolver):
    """Returns a random label from a fixed list of cities."""

    LOCATIONS = (
        "New York, US",
        "London, UK",
        "Mumbai, IN",
        "Tokyo, JP",
        "Sydney, AU",
    )

    def __init__(
        self,
        locations: Sequence[str] = LOCATIONS,
        rng: Optional[random.Random] = None,
    ):
        self.locations = tuple(locations)
        self.rng = rng or random.Random()

    def resolve(self, ip: Optional[str]) -> str:
        return self.rng.choice(self.locations)


class ClickRecorder:
    """Appends click events to stored records.

    Recording is best-effort telemetry: every failure is logged and turned
    into a False result so it can never abort a resolution.
    """

    def __init__(
        self,
        store: RecordStore,
        location_resolver: Optional[LocationResolver] = None,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.location_resolver = location_resolver or MockLocationResolver()
        self.clock = clock or utc_now
        self.logger = logger or get_logger("clicks")

    async def record(
        self,
        short_code: str,
        source: str = "direct",
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> bool:
        """Record one click on a short code.

        Args:
            short_code: Code that was resolved
            source: Entry point tag, e.g. "direct" or "statistics_page"
            user_agent: Optional client user agent
            ip: Optional client IP

        Returns:
            True if the click was persisted, False otherwise
        """
        self.logger.debug(f"Recording click on {short_code} from {source}")

        try:
            async with self.store.exclusive() as session:
                record = session.get(short_code)
                if record is None:
                    self.logger.warning(f"Cannot record click - {short_code} not found")
                    return False

                record.add_click(
                    ClickEvent(
                        timestamp=self.clock(),
                        source=source,
                        location=self.location_resolver.resolve(ip),
                        user_agent=user_agent,
                        ip=ip,
                    )
                )
                session.put(record)
        except RegistryError as e:
            self.logger.error(f"Failed to record click on {short_code}: {e}")
            return False

        self.logger.info(f"Click recorded on {short_code} (total {len(record.clicks)})")
        return True
