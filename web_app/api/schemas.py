"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import List, Optional, Tuple
from datetime import datetime

from shortlink.analytics import CollectionSummary, UrlAnalytics
from shortlink.models import CreateUrlRequest, UrlRecord


class ShortenRequest(BaseModel):
    """Request to shorten a URL.

    Field constraints are left to the core validators so API callers get the
    same error codes as every other caller.
    """

    url: str = Field(..., description="The URL to shorten")
    validity_minutes: Optional[int] = Field(None, description="Minutes until the link expires (default 30)")
    custom_code: Optional[str] = Field(None, description="Optional custom short code (3-20 alphanumeric)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://example.com/very/long/path/to/resource",
                    "validity_minutes": 30,
                    "custom_code": None
                },
                {
                    "url": "https://github.com/user/repo",
                    "validity_minutes": 120,
                    "custom_code": "myrepo"
                }
            ]
        }
    }

    def to_request(self) -> CreateUrlRequest:
        return CreateUrlRequest(
            original_url=self.url,
            validity_minutes=self.validity_minutes,
            custom_short_code=self.custom_code or None,
        )


class BatchShortenRequest(BaseModel):
    """Request to shorten several URLs at once."""

    urls: List[ShortenRequest] = Field(..., min_length=1, max_length=100)


class ClickResponse(BaseModel):
    timestamp: datetime
    source: str
    location: str
    user_agent: Optional[str] = None
    ip: Optional[str] = None


class URLInfoResponse(BaseModel):
    """Response with URL information."""

    id: str
    short_code: str
    short_url: str
    original_url: str
    custom_short_code: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    validity_minutes: int
    click_count: int
    is_active: bool

    @classmethod
    def from_record(cls, record: UrlRecord, short_url: str) -> "URLInfoResponse":
        return cls(
            id=record.id,
            short_code=record.short_code,
            short_url=short_url,
            original_url=record.original_url,
            custom_short_code=record.custom_short_code,
            created_at=record.created_at,
            expires_at=record.expires_at,
            validity_minutes=record.validity_minutes,
            click_count=len(record.clicks),
            is_active=record.is_active,
        )


class FailedItemResponse(BaseModel):
    request: ShortenRequest
    error: str
    message: str


class BatchShortenResponse(BaseModel):
    successful: List[URLInfoResponse]
    failed: List[FailedItemResponse]


class AnalyticsResponse(BaseModel):
    """Click analytics for one short code."""

    short_code: str
    total_clicks: int
    clicks_last_24h: int
    unique_sources: int
    unique_locations: int
    top_sources: List[Tuple[str, int]]
    top_locations: List[Tuple[str, int]]
    recent_clicks: List[ClickResponse]
    clicks_by_hour: List[Tuple[int, int]]

    @classmethod
    def from_analytics(cls, analytics: UrlAnalytics) -> "AnalyticsResponse":
        return cls(
            short_code=analytics.short_code,
            total_clicks=analytics.total_clicks,
            clicks_last_24h=analytics.clicks_last_24h,
            unique_sources=analytics.unique_sources,
            unique_locations=analytics.unique_locations,
            top_sources=analytics.top_sources,
            top_locations=analytics.top_locations,
            recent_clicks=[ClickResponse(**click.to_dict()) for click in analytics.recent_clicks],
            clicks_by_hour=analytics.clicks_by_hour,
        )


class RecordSummaryResponse(BaseModel):
    short_code: str
    clicks: int
    unique_sources: int
    unique_locations: int
    is_active: bool


class StatisticsResponse(BaseModel):
    """Statistics response."""

    total_urls: int
    active_urls: int
    expired_urls: int
    total_clicks: int
    records: List[RecordSummaryResponse]

    @classmethod
    def from_summary(cls, summary: CollectionSummary) -> "StatisticsResponse":
        return cls(
            total_urls=summary.total_urls,
            active_urls=summary.active_urls,
            expired_urls=summary.expired_urls,
            total_clicks=summary.total_clicks,
            records=[RecordSummaryResponse(**vars(item)) for item in summary.records],
        )


class ValidationResponse(BaseModel):
    is_valid: bool
    error: Optional[str] = None
    message: Optional[str] = None


class SweepResponse(BaseModel):
    removed: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    storage: str = Field(..., description="Storage status")
    backend: str = Field(..., description="Storage backend in use")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
