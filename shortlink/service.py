"""Registry service: the single entry point for callers of the shortlink core."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from .analytics import AnalyticsAggregator, CollectionSummary, UrlAnalytics
from .clicks import ClickRecorder
from .common.logging_config import get_logger
from .common.url_builder import build_short_url
from .common.validators import (
    ValidationResult,
    validate_short_code,
    validate_url,
    validate_validity_minutes,
)
from .errors import NotFound, RegistryError, ValidationError
from .models import Clock, CreateUrlRequest, UrlRecord, new_record_id, utc_now
from .shortcode import ShortCodeGenerator
from .storage.record_store import RecordStore

DEFAULT_VALIDITY_MINUTES = 30


@dataclass
class CreateResult:
    """Outcome of one create call: either a record or a validation error."""

    record: Optional[UrlRecord] = None
    error: Optional[ValidationError] = None

    @property
    def success(self) -> bool:
        return self.record is not None


@dataclass
class FailedRequest:
    request: CreateUrlRequest
    error: RegistryError


@dataclass
class BatchCreateResult:
    successful: List[UrlRecord] = field(default_factory=list)
    failed: List[FailedRequest] = field(default_factory=list)


class RegistryService:
    """Service layer for URL registration, resolution and analytics."""

    def __init__(
        self,
        store: RecordStore,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        recorder: Optional[ClickRecorder] = None,
        aggregator: Optional[AnalyticsAggregator] = None,
        base_url: str = "http://localhost:3000",
        path_prefix: str = "",
        default_validity_minutes: int = DEFAULT_VALIDITY_MINUTES,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize registry service.

        Args:
            store: Record store owning the collection
            short_code_generator: Optional short code generator
            recorder: Optional click recorder (built on the same store if omitted)
            aggregator: Optional analytics aggregator
            base_url: Base address used by build_public_url
            path_prefix: Optional path prefix for public URLs
            default_validity_minutes: Validity applied when a request omits it
            clock: Optional clock returning aware datetimes
            logger: Optional logger
        """
        if default_validity_minutes < 1:
            raise ValueError("default_validity_minutes must be positive")
        self.store = store
        self.clock = clock or utc_now
        self.generator = short_code_generator or ShortCodeGenerator()
        self.recorder = recorder or ClickRecorder(store, clock=self.clock)
        self.aggregator = aggregator or AnalyticsAggregator(clock=self.clock)
        self.base_url = base_url
        self.path_prefix = path_prefix
        self.default_validity_minutes = default_validity_minutes
        self.logger = logger or get_logger("service")

    async def create(self, request: CreateUrlRequest) -> CreateResult:
        """Create a new short URL.

        Validation failures are returned in the result, never raised. The URL
        error wins over the validity error, which wins over the code error.

        Args:
            request: The creation request

        Returns:
            CreateResult holding the record or the first validation error

        Raises:
            CodeSpaceExhausted: If no free code could be generated
            PersistenceError: If the store could not be read or written
        """
        self.logger.info(f"Creating short URL for {request.original_url}")

        for check in (
            validate_url(request.original_url),
            validate_validity_minutes(request.validity_minutes),
        ):
            if not check.is_valid:
                return self._reject(request, check.error)

        validity = request.validity_minutes or self.default_validity_minutes
        custom_code = request.custom_short_code or None

        async with self.store.exclusive() as session:
            taken = session.taken_codes()

            if custom_code:
                check = validate_short_code(custom_code, taken)
                if not check.is_valid:
                    return self._reject(request, check.error)
                short_code = custom_code
            else:
                short_code = self.generator.generate(taken)

            created_at = self.clock()
            record = UrlRecord(
                id=new_record_id(),
                original_url=request.original_url,
                short_code=short_code,
                custom_short_code=custom_code,
                created_at=created_at,
                expires_at=created_at + timedelta(minutes=validity),
                validity_minutes=validity,
            )
            session.put(record)

        self.logger.info(f"Created short URL: {record.short_code} -> {record.original_url} (id {record.id})")
        return CreateResult(record=record)

    def _reject(self, request: CreateUrlRequest, error: ValidationError) -> CreateResult:
        self.logger.warning(f"Rejected {request.original_url!r}: {error.message}")
        return CreateResult(error=error)

    async def create_batch(self, requests: Iterable[CreateUrlRequest]) -> BatchCreateResult:
        """Create several short URLs, isolating failures per request.

        Args:
            requests: Creation requests, processed in order

        Returns:
            BatchCreateResult; both buckets keep input order
        """
        requests = list(requests)
        self.logger.info(f"Creating {len(requests)} URLs in batch")
        result = BatchCreateResult()

        for request in requests:
            try:
                outcome = await self.create(request)
            except RegistryError as e:
                self.logger.error(f"Batch item {request.original_url!r} failed: {e}")
                result.failed.append(FailedRequest(request=request, error=e))
                continue

            if outcome.success:
                result.successful.append(outcome.record)
            else:
                result.failed.append(FailedRequest(request=request, error=outcome.error))

        self.logger.info(
            f"Batch creation completed: {len(result.successful)} successful, "
            f"{len(result.failed)} failed"
        )
        return result

    async def lookup(self, short_code: str) -> Optional[UrlRecord]:
        """Get the live record for a short code.

        Args:
            short_code: The short code to lookup

        Returns:
            The record, or None if it does not exist or has expired
        """
        record = await self.store.get(short_code)
        if record is None:
            self.logger.warning(f"Short code not found: {short_code}")
            return None

        now = self.clock()
        if record.is_expired(now):
            self.logger.warning(f"Short code expired: {short_code} (at {record.expires_at.isoformat()})")
            return None

        self.logger.debug(f"Found active URL: {short_code} -> {record.original_url}")
        return record.refresh_activity(now)

    async def resolve(
        self,
        short_code: str,
        source: str = "direct",
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> UrlRecord:
        """Resolve a short code and record the click.

        Click recording is best-effort and never fails the resolution.

        Raises:
            NotFound: If the code does not exist or has expired
        """
        record = await self.lookup(short_code)
        if record is None:
            raise NotFound(
                f"Short code '{short_code}' not found or has expired",
                {"short_code": short_code},
            )

        await self.record_click(short_code, source=source, user_agent=user_agent, ip=ip)
        return record

    async def record_click(
        self,
        short_code: str,
        source: str = "direct",
        user_agent: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> bool:
        return await self.recorder.record(short_code, source=source, user_agent=user_agent, ip=ip)

    async def get_record(self, short_code: str) -> Optional[UrlRecord]:
        """Get a record regardless of expiry, with a fresh is_active flag."""
        record = await self.store.get(short_code)
        return record.refresh_activity(self.clock()) if record else None

    async def list_urls(self) -> List[UrlRecord]:
        """List every stored record, newest first."""
        now = self.clock()
        records = [record.refresh_activity(now) for record in await self.store.list()]
        return sorted(records, key=lambda record: record.created_at, reverse=True)

    async def delete(self, record_id: str) -> bool:
        """Delete a record by id.

        Returns:
            True if deleted
        """
        deleted = await self.store.delete(record_id)
        if not deleted:
            self.logger.warning(f"URL not found for deletion: {record_id}")
        return deleted

    async def sweep_expired(self) -> int:
        """Remove every expired record; returns the number removed."""
        return await self.store.sweep_expired(self.clock())

    async def clear_all(self) -> int:
        self.logger.info("Clearing all URLs")
        return await self.store.clear()

    def build_public_url(self, short_code: str) -> str:
        return build_short_url(short_code, self.base_url, self.path_prefix)

    def validate_url(self, raw: Optional[str]) -> ValidationResult:
        return validate_url(raw)

    async def validate_short_code(self, code: Optional[str]) -> ValidationResult:
        """Validate a custom code against the current collection."""
        if not code:
            return validate_short_code(code)
        return validate_short_code(code, await self.store.taken_codes())

    async def analytics(self, short_code: str) -> Optional[UrlAnalytics]:
        record = await self.store.get(short_code)
        return self.aggregator.url_analytics(record) if record else None

    async def summary(self) -> CollectionSummary:
        return self.aggregator.summary_over_collection(await self.store.list())

    async def health_check(self) -> Dict[str, Any]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        storage_healthy = await self.store.health_check()
        return {
            "storage": storage_healthy,
            "backend": self.store.backend.name,
            "overall": storage_healthy,
        }

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
