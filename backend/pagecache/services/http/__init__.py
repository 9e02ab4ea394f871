"""
HTTP conditional request handling.
"""

from .negotiator import (
    ConditionalNegotiator,
    ConditionalRequest,
    Negotiation,
    NegotiationOutcome,
    ResourceIdentity,
    etag_matches,
    modified_since_matches,
)
from .response_state import CallType, ResponseState, classify_call_type, http_date

__all__ = [
    "ConditionalNegotiator",
    "ConditionalRequest",
    "Negotiation",
    "NegotiationOutcome",
    "ResourceIdentity",
    "etag_matches",
    "modified_since_matches",
    "CallType",
    "ResponseState",
    "classify_call_type",
    "http_date",
]
