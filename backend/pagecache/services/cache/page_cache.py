"""
Page Cache

Serves whole rendered pages from the cache. HTTP negotiation always runs
first: a 304 makes the cache lookup unnecessary.
"""

from typing import Optional, Union

import structlog
from starlette.requests import Request
from starlette.responses import HTMLResponse

from ...constants import PAGE_NAMESPACE
from ..http.negotiator import ConditionalNegotiator, ConditionalRequest, ResourceIdentity
from ..http.response_state import ResponseState
from .cache_facade import CacheFacade

logger = structlog.get_logger(__name__)


class PageCache:
    """Read-through cache for rendered HTML pages."""

    def __init__(self, cache: CacheFacade, negotiator: ConditionalNegotiator):
        self.cache = cache
        self.negotiator = negotiator

    @staticmethod
    def page_key(request: Request) -> str:
        """Default page key: request path plus query string."""
        query = request.url.query
        return f"{request.url.path}?{query}" if query else request.url.path

    async def show_page(
        self,
        request: Request,
        state: ResponseState,
        resource: ResourceIdentity,
        key: Optional[str] = None,
        namespace: str = PAGE_NAMESPACE,
        salt: str = "",
    ) -> Optional[HTMLResponse]:
        """
        Answer the request from cache if possible.

        Raises:
            NotModifiedException: If the client copy is still current

        Returns:
            The cached page response, or None when the page must be rendered
        """
        conditional = ConditionalRequest.from_headers(
            request.url.path, request.headers, self.negotiator.config
        )
        self.negotiator.enforce(conditional, resource, state, salt)

        if not self.cache.enabled:
            return None

        page_key = key or self.page_key(request)
        body = await self.cache.read(page_key, namespace)
        if body is None:
            return None

        logger.debug("Serving cached page", key=page_key, namespace=namespace)
        return self.respond(body, state)

    async def store_page(
        self,
        body: Union[str, bytes],
        request: Request,
        state: ResponseState,
        key: Optional[str] = None,
        namespace: str = PAGE_NAMESPACE,
        max_age: Optional[int] = None,
    ) -> HTMLResponse:
        """Cache a freshly rendered page (fail-open) and build its response."""
        body = await self.cache.write(
            body, key or self.page_key(request), namespace, max_age
        )
        return self.respond(body, state)

    def respond(self, body: Union[str, bytes], state: ResponseState) -> HTMLResponse:
        content = body.encode("utf-8") if isinstance(body, str) else body
        state.content_length = len(content)
        response = HTMLResponse(content=content)
        state.apply_headers(response, self.negotiator.config)
        return response
