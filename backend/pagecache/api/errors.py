"""
Exception handlers mapping cache errors to HTTP responses.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response
import structlog

from ..domain.cache.exceptions import (
    BackendUnavailableException,
    CacheException,
    InvalidKeyException,
    InvalidNamespaceException,
    MissingKeyException,
    NotModifiedException,
    UnknownBackendException,
    UnknownKeyHashException,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_EXCEPTION = (
    (MissingKeyException, 400),
    (InvalidKeyException, 400),
    (InvalidNamespaceException, 400),
    (UnknownBackendException, 500),
    (UnknownKeyHashException, 500),
    (BackendUnavailableException, 503),
)


def status_for(exc: CacheException) -> int:
    for exception_type, status_code in _STATUS_BY_EXCEPTION:
        if isinstance(exc, exception_type):
            return status_code
    return 500


class CacheHTTPException(HTTPException):
    """HTTP exception wrapper for cache errors."""

    def __init__(self, cache_exception: CacheException, status_code: int = 503):
        self.cache_exception = cache_exception
        super().__init__(
            status_code=status_code,
            detail={
                "error": cache_exception.error_code,
                "message": cache_exception.message,
                "details": cache_exception.details,
            },
        )


async def not_modified_handler(request: Request, exc: NotModifiedException) -> Response:
    """Empty 304: no body, only the ETag."""
    headers = {"ETag": f'"{exc.etag}"'} if exc.etag else None
    return Response(status_code=304, headers=headers)


async def cache_exception_handler(request: Request, exc: CacheException) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "Cache error",
        path=request.url.path,
        error_code=exc.error_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotModifiedException, not_modified_handler)
    app.add_exception_handler(CacheException, cache_exception_handler)
