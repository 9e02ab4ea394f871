"""
HTTP Conditional Request Negotiator

Computes the ETag of a resource and decides whether a request can be
answered with 304 Not Modified before any rendering or cache lookup.

Per request the negotiator is a two-state machine:
``Unchecked -> ShortCircuited | PassThrough``. ShortCircuited is terminal
(the request ends with an empty 304); PassThrough lets normal rendering
continue with the ETag attached to the response state.
"""

import hashlib
import os
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Mapping, Optional, Union

import structlog

from ...domain.cache.exceptions import NotModifiedException
from ...domain.cache.value_objects import HttpCacheConfig
from ...monitoring.cache_metrics import http_not_modified_total
from .response_state import CallType, ResponseState, classify_call_type

logger = structlog.get_logger(__name__)


class NegotiationOutcome(str, Enum):
    """Negotiation states."""

    UNCHECKED = "unchecked"
    SHORT_CIRCUITED = "short_circuited"
    PASS_THROUGH = "pass_through"


@dataclass(frozen=True)
class ResourceIdentity:
    """The resource a response is generated from."""

    path: str
    modified_time: float

    @classmethod
    def from_path(cls, path: Union[str, "os.PathLike[str]"]) -> "ResourceIdentity":
        """Build the identity from a file.

        Raises:
            OSError: If the file metadata cannot be read
        """
        return cls(path=os.fspath(path), modified_time=os.stat(path).st_mtime)


@dataclass(frozen=True)
class ConditionalRequest:
    """Conditional headers and call type of the incoming request."""

    if_none_match: Optional[str] = None
    if_modified_since: Optional[str] = None
    call_type: CallType = CallType.HTTP

    @classmethod
    def from_headers(
        cls, path: str, headers: Mapping[str, str], config: HttpCacheConfig
    ) -> "ConditionalRequest":
        return cls(
            if_none_match=headers.get("if-none-match"),
            if_modified_since=headers.get("if-modified-since"),
            call_type=classify_call_type(
                path, headers, config.api_prefix, config.admin_prefix
            ),
        )


@dataclass(frozen=True)
class Negotiation:
    """Result of negotiating one request."""

    outcome: NegotiationOutcome
    etag: Optional[str] = None

    @property
    def short_circuited(self) -> bool:
        return self.outcome == NegotiationOutcome.SHORT_CIRCUITED


def etag_matches(header: Optional[str], etag: str) -> bool:
    """Compare an If-None-Match header against ``etag``.

    Accepts quoted, weak (``W/``) and comma-separated tags, and ``*``.
    """
    if not header:
        return False

    for candidate in header.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate.strip('"') == etag:
            return True
    return False


def modified_since_matches(header: Optional[str], modified_time: float) -> bool:
    """True when If-Modified-Since names the resource mtime (second precision)."""
    if not header:
        return False
    try:
        client_time = parsedate_to_datetime(header.strip())
    except (TypeError, ValueError, IndexError):
        return False
    if client_time is None:
        return False
    return int(client_time.timestamp()) == int(modified_time)


class ConditionalNegotiator:
    """
    ETag negotiation for one application.

    The fingerprint is sha1(project identity + resource path + resource
    mtime + salt). Pass a salt such as a content version to scope the ETag to
    page content rather than just the resource file.
    """

    def __init__(self, config: HttpCacheConfig, project_id: str):
        self.config = config
        self.project_id = project_id

    def fingerprint(self, resource: ResourceIdentity, salt: str = "") -> str:
        material = (
            f"{self.project_id}{resource.path}{int(resource.modified_time)}{salt or ''}"
        )
        return hashlib.sha1(material.encode("utf-8")).hexdigest()

    def negotiate(
        self,
        request: ConditionalRequest,
        resource: ResourceIdentity,
        state: ResponseState,
        salt: str = "",
    ) -> Negotiation:
        """Decide between 304 and full processing.

        Never raises for a non-matching request; a pending flash message
        always forces full processing so it is not lost to a client cache.
        """
        etag = self.fingerprint(resource, salt)
        state.call_type = request.call_type
        state.last_modified = resource.modified_time

        if not self.config.enabled or request.call_type in (CallType.AJAX, CallType.API):
            state.etag = None
            return Negotiation(NegotiationOutcome.PASS_THROUGH)

        state.etag = etag

        # If-None-Match takes precedence; If-Modified-Since only counts alone
        if request.if_none_match:
            matched = etag_matches(request.if_none_match, etag)
        else:
            matched = modified_since_matches(
                request.if_modified_since, resource.modified_time
            )

        if not matched:
            return Negotiation(NegotiationOutcome.PASS_THROUGH, etag)

        if state.has_pending_flash:
            logger.debug(
                "Conditional match ignored, flash messages pending",
                resource=resource.path,
                flash_count=len(state.flash_messages),
            )
            return Negotiation(NegotiationOutcome.PASS_THROUGH, etag)

        http_not_modified_total.inc()
        logger.debug("Client copy is current", resource=resource.path, etag=etag)
        return Negotiation(NegotiationOutcome.SHORT_CIRCUITED, etag)

    def enforce(
        self,
        request: ConditionalRequest,
        resource: ResourceIdentity,
        state: ResponseState,
        salt: str = "",
    ) -> Negotiation:
        """Negotiate and end the request with NotModifiedException on a match."""
        negotiation = self.negotiate(request, resource, state, salt)
        if negotiation.short_circuited:
            raise NotModifiedException(negotiation.etag)
        return negotiation
