"""Resolution route: GET /{short_code} redirects and records a click."""

from fastapi import APIRouter, Request, Query
from fastapi.responses import RedirectResponse

from shortlink.errors import RegistryError

from ..api.routes import http_error

router = APIRouter()


@router.get("/{short_code}", include_in_schema=False)
async def resolve_short_code(
    request: Request,
    short_code: str,
    src: str = Query("direct", max_length=64),
):
    """Redirect to the original URL of a live short code."""
    service = request.app.state.service

    try:
        record = await service.resolve(
            short_code,
            source=src,
            user_agent=request.headers.get("user-agent"),
            ip=getattr(request.state, "client_ip", None),
        )
    except RegistryError as e:
        raise http_error(e)

    return RedirectResponse(url=record.original_url, status_code=302)
