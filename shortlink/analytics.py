"""Read-side analytics over URL records."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple

from .models import ClickEvent, Clock, UrlRecord, utc_now


@dataclass
class UrlAnalytics:
    """Click analytics for a single record."""

    short_code: str
    total_clicks: int
    clicks_last_24h: int
    unique_sources: int
    unique_locations: int
    top_sources: List[Tuple[str, int]]
    top_locations: List[Tuple[str, int]]
    recent_clicks: List[ClickEvent]
    clicks_by_hour: List[Tuple[int, int]]


@dataclass
class RecordSummary:
    short_code: str
    clicks: int
    unique_sources: int
    unique_locations: int
    is_active: bool


@dataclass
class CollectionSummary:
    """Totals over a collection of records."""

    total_urls: int
    active_urls: int
    expired_urls: int
    total_clicks: int
    records: List[RecordSummary] = field(default_factory=list)


def _ranked(values: Iterable[str], n: int) -> List[Tuple[str, int]]:
    # Counter keeps first-seen order and sorted() is stable, so ties stay in
    # order of first appearance.
    counts = Counter(values)
    return sorted(counts.items(), key=lambda item: -item[1])[:n]


class AnalyticsAggregator:
    """Pure computations over records returned by the store."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or utc_now

    def top_sources(self, record: UrlRecord, n: int = 5) -> List[Tuple[str, int]]:
        return _ranked((click.source for click in record.clicks), n)

    def top_locations(self, record: UrlRecord, n: int = 5) -> List[Tuple[str, int]]:
        return _ranked((click.location for click in record.clicks), n)

    def recent_clicks(self, record: UrlRecord, n: int = 10) -> List[ClickEvent]:
        return sorted(record.clicks, key=lambda click: click.timestamp, reverse=True)[:n]

    def clicks_in_window(self, record: UrlRecord, window: timedelta) -> int:
        """Count clicks with a timestamp in [now - window, now]."""
        now = self.clock()
        start = now - window
        return sum(1 for click in record.clicks if start <= click.timestamp <= now)

    def clicks_by_hour(self, record: UrlRecord) -> List[Tuple[int, int]]:
        """Click counts per hour of day (0-23, UTC offset of the stored timestamps)."""
        buckets = Counter(click.timestamp.hour for click in record.clicks)
        return [(hour, buckets.get(hour, 0)) for hour in range(24)]

    def url_analytics(self, record: UrlRecord) -> UrlAnalytics:
        """Build the full analytics view for one record."""
        return UrlAnalytics(
            short_code=record.short_code,
            total_clicks=len(record.clicks),
            clicks_last_24h=self.clicks_in_window(record, timedelta(hours=24)),
            unique_sources=len({click.source for click in record.clicks}),
            unique_locations=len({click.location for click in record.clicks}),
            top_sources=self.top_sources(record),
            top_locations=self.top_locations(record),
            recent_clicks=self.recent_clicks(record),
            clicks_by_hour=self.clicks_by_hour(record),
        )

    def summary_over_collection(self, records: Iterable[UrlRecord]) -> CollectionSummary:
        """Summarize a collection; a record is active while expires_at > now."""
        now = self.clock()
        records = list(records)
        per_record = [
            RecordSummary(
                short_code=record.short_code,
                clicks=len(record.clicks),
                unique_sources=len({click.source for click in record.clicks}),
                unique_locations=len({click.location for click in record.clicks}),
                is_active=record.expires_at > now,
            )
            for record in records
        ]
        active = sum(1 for summary in per_record if summary.is_active)

        return CollectionSummary(
            total_urls=len(records),
            active_urls=active,
            expired_urls=len(records) - active,
            total_clicks=sum(summary.clicks for summary in per_record),
            records=per_record,
        )
