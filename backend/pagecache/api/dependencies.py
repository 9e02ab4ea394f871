"""
FastAPI dependencies for the cache and HTTP negotiation.

Services are composed once in ``create_app`` and stored on ``app.state``;
the per-request ResponseState lives on ``request.state``.
"""

import inspect
import json
from typing import Callable, List, Optional

from fastapi import Depends, Request

from ..services.cache.cache_facade import CacheFacade
from ..services.cache.page_cache import PageCache
from ..services.http.negotiator import (
    ConditionalNegotiator,
    ConditionalRequest,
    Negotiation,
    ResourceIdentity,
)
from ..services.http.response_state import ResponseState

FLASH_COOKIE = "flash"


def get_cache_facade(request: Request) -> CacheFacade:
    return request.app.state.cache


def get_negotiator(request: Request) -> ConditionalNegotiator:
    return request.app.state.negotiator


def get_page_cache(request: Request) -> PageCache:
    return request.app.state.page_cache


def load_flash_messages(raw: Optional[str]) -> List[str]:
    """Decode the flash cookie: a JSON list of strings or one plain message."""
    if not raw:
        return []
    try:
        messages = json.loads(raw)
    except ValueError:
        return [raw]
    if isinstance(messages, list):
        return [str(message) for message in messages if message]
    return [str(messages)] if messages else []


def get_response_state(request: Request) -> ResponseState:
    """Return the ResponseState of this request, creating it on first use."""
    state = getattr(request.state, "response_state", None)
    if state is None:
        state = ResponseState(
            flash_messages=load_flash_messages(request.cookies.get(FLASH_COOKIE))
        )
        request.state.response_state = state
    return state


def endpoint_resource(request: Request) -> ResourceIdentity:
    """Identity of the matched endpoint: its source file and that file's mtime.

    Raises:
        RuntimeError: If the endpoint has no source file
    """
    endpoint = request.scope.get("endpoint")
    source = inspect.getsourcefile(endpoint) if endpoint is not None else None
    if not source:
        raise RuntimeError(f"No source file for endpoint of {request.url.path}")
    return ResourceIdentity.from_path(source)


def conditional_request(salt: str = "") -> Callable:
    """
    Dependency factory running ETag negotiation for the matched endpoint.

    Raises NotModifiedException (answered with an empty 304) when the client
    copy is current.
    """

    async def negotiate(
        request: Request,
        state: ResponseState = Depends(get_response_state),
        negotiator: ConditionalNegotiator = Depends(get_negotiator),
    ) -> Negotiation:
        conditional = ConditionalRequest.from_headers(
            request.url.path, request.headers, negotiator.config
        )
        return negotiator.enforce(conditional, endpoint_resource(request), state, salt)

    return negotiate
