"""Core engine for the shortlink registry."""

from .models import ClickEvent, CreateUrlRequest, UrlRecord
from .shortcode import ShortCodeGenerator
from .storage import RecordStore, create_backend
from .clicks import ClickRecorder, MockLocationResolver
from .analytics import AnalyticsAggregator
from .service import RegistryService, CreateResult, BatchCreateResult, FailedRequest

__version__ = "1.0.0"

__all__ = [
    "ClickEvent",
    "CreateUrlRequest",
    "UrlRecord",
    "ShortCodeGenerator",
    "RecordStore",
    "create_backend",
    "ClickRecorder",
    "MockLocationResolver",
    "AnalyticsAggregator",
    "RegistryService",
    "CreateResult",
    "BatchCreateResult",
    "FailedRequest",
]
