"""API routes implementation."""

from fastapi import APIRouter, Request, HTTPException, Query, status
from datetime import datetime, timezone
from typing import List

from .schemas import (
    AnalyticsResponse,
    BatchShortenRequest,
    BatchShortenResponse,
    ErrorResponse,
    FailedItemResponse,
    HealthResponse,
    ShortenRequest,
    StatisticsResponse,
    SweepResponse,
    URLInfoResponse,
    ValidationResponse,
)
from shortlink.errors import (
    CodeSpaceExhausted,
    NotFound,
    PersistenceError,
    RegistryError,
    ShortCodeTaken,
    ValidationError,
)

router = APIRouter()


def http_error(error: RegistryError) -> HTTPException:
    """Map a registry error onto an HTTP error."""
    if isinstance(error, ShortCodeTaken):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(error, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, NotFound):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, CodeSpaceExhausted):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, PersistenceError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=status_code, detail=error.to_dict())


def _info(request: Request, record) -> URLInfoResponse:
    service = request.app.state.service
    return URLInfoResponse.from_record(record, service.build_public_url(record.short_code))


@router.post(
    "/shorten",
    response_model=URLInfoResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        503: {"model": ErrorResponse, "description": "No free short code available"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a validity period and a custom short code.",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service

    try:
        result = await service.create(body.to_request())
    except RegistryError as e:
        raise http_error(e)

    if not result.success:
        raise http_error(result.error)

    return _info(request, result.record)


@router.post(
    "/shorten/batch",
    response_model=BatchShortenResponse,
    summary="Create several short URLs",
    description="Each item is processed independently; failures never roll back other items.",
)
async def shorten_batch(request: Request, body: BatchShortenRequest):
    """Create several shortened URLs."""
    service = request.app.state.service

    pairs = [(item.to_request(), item) for item in body.urls]
    bodies = {id(create_request): item for create_request, item in pairs}

    result = await service.create_batch([create_request for create_request, _ in pairs])

    return BatchShortenResponse(
        successful=[_info(request, record) for record in result.successful],
        failed=[
            FailedItemResponse(
                request=bodies[id(failure.request)],
                error=failure.error.code,
                message=failure.error.message,
            )
            for failure in result.failed
        ],
    )


@router.get(
    "/urls",
    response_model=List[URLInfoResponse],
    summary="List URLs",
    description="List every stored URL, newest first, including expired ones not yet swept.",
)
async def list_urls(request: Request):
    """List stored URLs."""
    service = request.app.state.service

    try:
        records = await service.list_urls()
    except RegistryError as e:
        raise http_error(e)

    return [_info(request, record) for record in records]


@router.get(
    "/urls/{short_code}",
    response_model=URLInfoResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found or expired"},
    },
    summary="Get URL information",
    description="Get information about a live shortened URL without recording a click.",
)
async def get_url_info(request: Request, short_code: str):
    """Get information about a shortened URL."""
    service = request.app.state.service

    try:
        record = await service.lookup(short_code)
    except RegistryError as e:
        raise http_error(e)

    if record is None:
        raise http_error(NotFound(f"Short code '{short_code}' not found or has expired"))

    return _info(request, record)


@router.get(
    "/urls/{short_code}/analytics",
    response_model=AnalyticsResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get click analytics",
)
async def get_url_analytics(request: Request, short_code: str):
    """Get click analytics for a short code."""
    service = request.app.state.service

    try:
        analytics = await service.analytics(short_code)
    except RegistryError as e:
        raise http_error(e)

    if analytics is None:
        raise http_error(NotFound(f"Short code '{short_code}' not found"))

    return AnalyticsResponse.from_analytics(analytics)


@router.delete(
    "/urls/id/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Record not found"},
    },
    summary="Delete URL",
)
async def delete_url(request: Request, record_id: str):
    """Delete a URL record by id."""
    service = request.app.state.service

    try:
        deleted = await service.delete(record_id)
    except RegistryError as e:
        raise http_error(e)

    if not deleted:
        raise http_error(NotFound(f"Record '{record_id}' not found"))


@router.post(
    "/sweep",
    response_model=SweepResponse,
    summary="Remove expired URLs",
)
async def sweep_expired(request: Request):
    """Remove every expired record."""
    service = request.app.state.service

    try:
        removed = await service.sweep_expired()
    except RegistryError as e:
        raise http_error(e)

    return SweepResponse(removed=removed)


@router.get(
    "/validate/short-code",
    response_model=ValidationResponse,
    summary="Validate a custom short code",
    description="Inline feedback for a custom code: format and availability.",
)
async def validate_short_code(request: Request, code: str = Query("")):
    """Check whether a custom short code can be used."""
    service = request.app.state.service

    try:
        result = await service.validate_short_code(code)
    except RegistryError as e:
        raise http_error(e)

    return ValidationResponse(
        is_valid=result.is_valid,
        error=result.error.code if result.error else None,
        message=result.message or None,
    )


@router.get(
    "/stats",
    response_model=StatisticsResponse,
    summary="Get statistics",
    description="Get collection-wide statistics.",
)
async def get_statistics(request: Request):
    """Get service statistics."""
    service = request.app.state.service

    try:
        summary = await service.summary()
    except RegistryError as e:
        raise http_error(e)

    return StatisticsResponse.from_summary(summary)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        storage="healthy" if health["storage"] else "unhealthy",
        backend=health["backend"],
        timestamp=datetime.now(timezone.utc),
    )
