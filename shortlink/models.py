"""Data models for the shortlink registry."""

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock used by every component."""
    return datetime.now(timezone.utc)


def new_record_id() -> str:
    """Generate an opaque record identifier (url_<epoch ms>_<random>)."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"url_{int(time.time() * 1000)}_{suffix}"


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class ClickEvent:
    """A single resolution of a short code."""

    timestamp: datetime
    source: str
    location: str
    user_agent: Optional[str] = None
    ip: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "location": self.location,
            "user_agent": self.user_agent,
            "ip": self.ip,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClickEvent":
        """Create from dictionary."""
        return cls(
            timestamp=_parse_timestamp(data["timestamp"]),
            source=data["source"],
            location=data.get("location", ""),
            user_agent=data.get("user_agent"),
            ip=data.get("ip"),
        )


@dataclass
class UrlRecord:
    """Represents a shortened URL and its click history."""

    id: str
    original_url: str
    short_code: str
    created_at: datetime
    expires_at: datetime
    validity_minutes: int
    custom_short_code: Optional[str] = None
    clicks: List[ClickEvent] = field(default_factory=list)
    is_active: bool = True

    def is_expired(self, now: datetime) -> bool:
        """A record is live up to and including its expiry instant."""
        return now > self.expires_at

    def refresh_activity(self, now: datetime) -> "UrlRecord":
        """Recompute the cached is_active flag against the given time."""
        self.is_active = not self.is_expired(now)
        return self

    def add_click(self, event: ClickEvent) -> None:
        self.clicks.append(event)

    @property
    def codes(self) -> set:
        """Every code this record reserves."""
        reserved = {self.short_code}
        if self.custom_short_code:
            reserved.add(self.custom_short_code)
        return reserved

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "original_url": self.original_url,
            "short_code": self.short_code,
            "custom_short_code": self.custom_short_code,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "validity_minutes": self.validity_minutes,
            "clicks": [click.to_dict() for click in self.clicks],
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UrlRecord":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            original_url=data["original_url"],
            short_code=data["short_code"],
            custom_short_code=data.get("custom_short_code"),
            created_at=_parse_timestamp(data["created_at"]),
            expires_at=_parse_timestamp(data["expires_at"]),
            validity_minutes=data["validity_minutes"],
            clicks=[ClickEvent.from_dict(click) for click in data.get("clicks", [])],
            is_active=data.get("is_active", True),
        )


@dataclass
class CreateUrlRequest:
    """A caller's request to shorten one URL."""

    original_url: str
    validity_minutes: Optional[int] = None
    custom_short_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "original_url": self.original_url,
            "validity_minutes": self.validity_minutes,
            "custom_short_code": self.custom_short_code,
        }
