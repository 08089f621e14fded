"""Forwarded headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Resolve the client IP, honouring X-Forwarded-For from a proxy."""

    async def dispatch(self, request: Request, call_next: Callable):
        """Store the client IP in request state for click enrichment."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            # First entry is the original client
            request.state.client_ip = forwarded_for.split(",")[0].strip()
        else:
            request.state.client_ip = request.client.host if request.client else None

        response = await call_next(request)
        return response
