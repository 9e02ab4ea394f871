"""
Cache Headers Middleware

Writes the caching headers (ETag, Cache-Control, Last-Modified,
Content-Length) recorded in the request's ResponseState onto the outgoing
response. Headers already applied by the page cache are not written twice.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable

logger = structlog.get_logger()


class CacheHeadersMiddleware(BaseHTTPMiddleware):
    """
    Apply per-request caching headers.

    Requests that never touched a ResponseState and 304 responses (already
    final) pass through untouched.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        state = getattr(request.state, "response_state", None)
        if state is None or response.status_code == 304:
            return response

        if state.apply_headers(response, request.app.state.http_cache_config):
            logger.debug(
                "Cache headers added",
                path=request.url.path,
                status_code=response.status_code,
                etag=state.etag,
            )
        return response
