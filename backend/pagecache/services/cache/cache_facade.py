"""
Cache Facade

High-level cache service that orchestrates the key hasher and the configured
store. The cache is an optimization, never a source of truth: backend
failures on read look like misses and backend failures on write hand the
value back unchanged while the cause goes to the operator channel.
"""

from typing import Optional, Union

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ...core.config import Settings, get_settings
from ...domain.cache.exceptions import (
    BackendUnavailableException,
    InvalidKeyException,
    MissingKeyException,
)
from ...domain.cache.key_hasher import KeyHasher
from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import (
    CacheConfig,
    Degraded,
    MaxAge,
    Ok,
    WriteOutcome,
    normalize_namespace,
)
from ...infrastructure.stores.registry import create_store
from ...monitoring.cache_metrics import (
    cache_degraded_operations_total,
    cache_operation_duration,
    cache_requests_total,
)
from .notifier import LogNotifier, OperatorNotifier

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

CacheValue = Union[bytes, str]


class CacheFacade:
    """
    Unified read/write/clear interface over one cache store.

    Provides read-through caching with lazy expiry, fail-open writes and
    operator commands (clear, size, count, purge).
    """

    def __init__(
        self,
        config: CacheConfig,
        store: Optional[CacheStore] = None,
        hasher: Optional[KeyHasher] = None,
        notifier: Optional[OperatorNotifier] = None,
    ):
        self.config = config
        self.store = store if store is not None else create_store(config)
        self.hasher = hasher or KeyHasher(config.key_hash, config.key_interlace)
        self.notifier = notifier or LogNotifier()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CacheFacade":
        """Compose a facade from application settings."""
        settings = settings or get_settings()
        return cls(settings.cache_config())

    @property
    def enabled(self) -> bool:
        return self.config.enabled and self.store.enabled

    async def read(self, key: str, namespace: Optional[str] = None) -> Optional[bytes]:
        """
        Read a cached blob.

        Args:
            key: Logical cache key (required)
            namespace: Cache region, e.g. "htmlpage"

        Returns:
            The cached blob, or None on miss, expiry, disabled cache or
            backend failure

        Raises:
            MissingKeyException: If key is empty
        """
        if not key:
            raise MissingKeyException("read")

        with tracer.start_as_current_span("cache.read") as span:
            span.set_attribute("cache.namespace", namespace or "")
            normalize_namespace(namespace)

            if not self.enabled:
                cache_requests_total.labels(operation="read", result="disabled").inc()
                return None

            try:
                with cache_operation_duration.labels(operation="read").time():
                    value = await self.store.get(self.hasher.hash(key), namespace)
            except (BackendUnavailableException, InvalidKeyException) as e:
                cache_degraded_operations_total.labels(operation="read").inc()
                span.set_status(Status(StatusCode.ERROR, str(e)))
                self.notifier.notify(e, operation="read", key=key, namespace=namespace)
                return None

            hit = value is not None
            span.set_attribute("cache.hit", hit)
            cache_requests_total.labels(
                operation="read", result="hit" if hit else "miss"
            ).inc()
            logger.debug("Cache read", key=key, namespace=namespace, hit=hit)
            return value

    async def read_text(
        self, key: str, namespace: Optional[str] = None
    ) -> Optional[str]:
        """Read a cached blob decoded as UTF-8."""
        value = await self.read(key, namespace)
        if value is None:
            return None
        return value.decode("utf-8")

    async def write(
        self,
        value: CacheValue,
        key: str,
        namespace: Optional[str] = None,
        max_age: Optional[int] = None,
    ) -> CacheValue:
        """
        Write a value and return it unchanged.

        Backend failures never reach the caller; they are counted, logged
        and sent to the operator notifier.

        Raises:
            MissingKeyException: If key is empty
        """
        if not key:
            raise MissingKeyException("write")
        if max_age is not None:
            MaxAge(max_age)

        with tracer.start_as_current_span("cache.write") as span:
            span.set_attribute("cache.namespace", namespace or "")
            normalize_namespace(namespace)

            outcome = await self._put(value, key, namespace, max_age)
            if isinstance(outcome, Degraded):
                cache_degraded_operations_total.labels(operation="write").inc()
                span.set_status(Status(StatusCode.ERROR, str(outcome.cause)))
                self.notifier.notify(
                    outcome.cause, operation="write", key=key, namespace=namespace
                )
            return outcome.value

    async def _put(
        self,
        value: CacheValue,
        key: str,
        namespace: Optional[str],
        max_age: Optional[int],
    ) -> WriteOutcome:
        if not self.enabled:
            cache_requests_total.labels(operation="write", result="disabled").inc()
            return Ok(value)

        blob = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        try:
            with cache_operation_duration.labels(operation="write").time():
                await self.store.put(
                    blob,
                    self.hasher.hash(key),
                    namespace,
                    max_age or self.config.max_age,
                )
        except Exception as e:
            return Degraded(value, e)

        cache_requests_total.labels(operation="write", result="stored").inc()
        logger.debug("Cache write", key=key, namespace=namespace, size=len(blob))
        return Ok(value)

    async def clear(
        self, key: Optional[str] = None, namespace: Optional[str] = None
    ) -> int:
        """Clear one entry, a namespace, or the whole cache.

        ``key=None`` means no key; an empty key is rejected rather than
        widening the clear to the namespace.

        Raises:
            MissingKeyException: If key is an empty string
        """
        if key is not None and not key:
            raise MissingKeyException("clear")

        with tracer.start_as_current_span("cache.clear") as span:
            span.set_attribute("cache.namespace", namespace or "")
            hashed_key = self.hasher.hash(key) if key is not None else None
            removed = await self.store.clear(hashed_key, namespace)
            cache_requests_total.labels(operation="clear", result="ok").inc()
            logger.info(
                "Cache cleared",
                key=key,
                namespace=namespace,
                removed=removed,
                store=self.store.name,
            )
            return removed

    async def size(self, namespace: Optional[str] = None) -> int:
        """Total bytes held by the cache."""
        with tracer.start_as_current_span("cache.size"):
            return await self.store.size(namespace)

    async def count(self, namespace: Optional[str] = None) -> int:
        """Number of entries held by the cache."""
        with tracer.start_as_current_span("cache.count"):
            return await self.store.count(namespace)

    async def purge_expired(self, namespace: Optional[str] = None) -> int:
        """Remove entries older than their max age."""
        with tracer.start_as_current_span("cache.purge_expired"):
            removed = await self.store.purge_expired(namespace)
            logger.info("Expired cache entries purged", namespace=namespace, removed=removed)
            return removed

    async def close(self) -> None:
        await self.store.close()
