"""
Middleware modules for request/response processing.

Includes:
- Cache headers (ETag, Cache-Control, Last-Modified)
"""

from .cache_headers import CacheHeadersMiddleware

__all__ = [
    "CacheHeadersMiddleware",
]
