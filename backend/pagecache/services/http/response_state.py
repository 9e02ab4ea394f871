"""
Per-request HTTP response state.

Carries what the caching headers need (status, ETag, modification time,
content length, pending flash messages) through one request, and writes the
headers exactly once.
"""

from dataclasses import dataclass, field
from email.utils import formatdate
from enum import Enum
from typing import List, Mapping, Optional

from starlette.responses import Response

from ...domain.cache.value_objects import HttpCacheConfig


class CallType(str, Enum):
    """How the current request was made."""

    HTTP = "http"
    AJAX = "ajax"
    API = "api"
    ADMIN = "admin"


def _under_prefix(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    if not prefix:
        return False
    return path == prefix or path.startswith(prefix + "/")


def classify_call_type(
    path: str,
    headers: Mapping[str, str],
    api_prefix: str = "/api",
    admin_prefix: str = "/admin",
) -> CallType:
    """Classify a request as ajax, api, admin or plain http."""
    requested_with = headers.get("x-requested-with", "")
    if requested_with.lower() == "xmlhttprequest":
        return CallType.AJAX
    if _under_prefix(path, api_prefix):
        return CallType.API
    if _under_prefix(path, admin_prefix):
        return CallType.ADMIN
    return CallType.HTTP


def http_date(timestamp: float) -> str:
    """Format a Unix timestamp as an HTTP-date."""
    return formatdate(int(timestamp), usegmt=True)


@dataclass
class ResponseState:
    """Mutable state of one response, scoped to one request."""

    call_type: CallType = CallType.HTTP
    status_code: int = 200
    etag: Optional[str] = None
    last_modified: Optional[float] = None
    content_length: Optional[int] = None
    flash_messages: List[str] = field(default_factory=list)
    headers_sent: bool = False

    @property
    def has_pending_flash(self) -> bool:
        return bool(self.flash_messages)

    def add_flash(self, message: str) -> None:
        self.flash_messages.append(message)

    def cache_headers(self, config: HttpCacheConfig) -> dict:
        """Return the caching headers for the current state."""
        headers = {}

        if self.content_length is not None:
            headers["Content-Length"] = str(self.content_length)

        if not config.enabled:
            return headers

        if self.status_code not in (200, 304):
            # Error pages must never be cached
            headers["Cache-Control"] = "no-store, max-age=0"
            return headers

        if self.status_code == 200 and self.last_modified is not None:
            headers["Last-Modified"] = http_date(self.last_modified)

        if self.call_type == CallType.HTTP:
            headers["Cache-Control"] = config.cache_control
            if self.etag:
                headers["ETag"] = f'"{self.etag}"'

        return headers

    def apply_headers(self, response: Response, config: HttpCacheConfig) -> bool:
        """Write caching headers onto ``response``.

        Returns False, and changes nothing, if headers were already sent for
        this request.
        """
        if self.headers_sent:
            return False
        self.headers_sent = True
        self.status_code = response.status_code

        if self.status_code not in (200, 304):
            self.etag = None

        for name, value in self.cache_headers(config).items():
            response.headers[name] = value
        return True
