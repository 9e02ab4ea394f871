"""
Redis Cache Store

External key-value backend. Expiry is delegated to Redis (``SET ... EX``);
namespaces become server-side key prefixes. With namespace versioning a
namespace is invalidated atomically by bumping its version counter, so
readers miss immediately while the old keys are swept.
"""

import re
from contextlib import contextmanager
from typing import AsyncIterator, Iterator, List, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ...domain.cache.exceptions import BackendUnavailableException
from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import MaxAge, normalize_namespace

logger = structlog.get_logger(__name__)

_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")
_VERSION_MARKER = "__ns__:"
_SCAN_BATCH = 500


def escape_pattern(value: str) -> str:
    """Escape Redis glob characters in ``value``."""
    return _GLOB_SPECIALS.sub(r"\\\1", value)


class RedisStore(CacheStore):
    """Cache store backed by Redis."""

    name = "external"

    def __init__(
        self,
        client: Redis,
        key_prefix: str = "pagecache:",
        max_age: int = 86400,
        namespace_versioning: bool = True,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.max_age = MaxAge(max_age).seconds
        self.namespace_versioning = namespace_versioning

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisStore":
        """Create a store with a client for ``url``."""
        return cls(Redis.from_url(url, decode_responses=False), **kwargs)

    @contextmanager
    def _backend_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except RedisError as e:
            raise BackendUnavailableException(
                message=f"Redis {operation} failed: {e}",
                backend=self.name,
                operation=operation,
                original_error=e,
            )

    # Keys

    def _version_key(self, namespace_name: str) -> str:
        return f"{self.key_prefix}{_VERSION_MARKER}{namespace_name}"

    async def _namespace_segment(
        self, namespace: Optional[str], create: bool
    ) -> Optional[str]:
        """Return the key segment for ``namespace``.

        Returns None when versioning is on, the namespace has no version yet
        and ``create`` is False: nothing can be stored under it.
        """
        name = normalize_namespace(namespace).rstrip("/")
        if not name:
            return ""
        if not self.namespace_versioning:
            return f"{name}:"

        version_key = self._version_key(name)
        version = await self.client.get(version_key)
        if version is None:
            if not create:
                return None
            await self.client.set(version_key, 1, nx=True)
            version = await self.client.get(version_key)

        return f"{name}:{int(version)}:"

    def _namespace_patterns(self, namespace: Optional[str]) -> List[str]:
        name = normalize_namespace(namespace).rstrip("/")
        prefix = escape_pattern(self.key_prefix)
        if not name:
            return [f"{prefix}*"]
        escaped = escape_pattern(name)
        # The namespace itself and every sub-namespace below it
        return [f"{prefix}{escaped}:*", f"{prefix}{escaped}/*"]

    async def _scan(self, namespace: Optional[str]) -> AsyncIterator[bytes]:
        version_prefix = f"{self.key_prefix}{_VERSION_MARKER}".encode("utf-8")
        seen = set()
        for pattern in self._namespace_patterns(namespace):
            async for key in self.client.scan_iter(match=pattern, count=_SCAN_BATCH):
                raw = key if isinstance(key, bytes) else str(key).encode("utf-8")
                if raw.startswith(version_prefix) or raw in seen:
                    continue
                seen.add(raw)
                yield raw

    # Store contract

    async def get(
        self, hashed_key: str, namespace: Optional[str] = None
    ) -> Optional[bytes]:
        with self._backend_errors("get"):
            segment = await self._namespace_segment(namespace, create=False)
            if segment is None:
                return None
            return await self.client.get(f"{self.key_prefix}{segment}{hashed_key}")

    async def put(
        self,
        value: bytes,
        hashed_key: str,
        namespace: Optional[str] = None,
        max_age: Optional[int] = None,
    ) -> bytes:
        with self._backend_errors("put"):
            segment = await self._namespace_segment(namespace, create=True)
            await self.client.set(
                f"{self.key_prefix}{segment}{hashed_key}",
                value,
                ex=max_age or self.max_age,
            )
        return value

    async def clear(
        self, hashed_key: Optional[str] = None, namespace: Optional[str] = None
    ) -> int:
        with self._backend_errors("clear"):
            if hashed_key is not None:
                segment = await self._namespace_segment(namespace, create=False)
                if segment is None:
                    return 0
                return int(
                    await self.client.delete(f"{self.key_prefix}{segment}{hashed_key}")
                )

            name = normalize_namespace(namespace).rstrip("/")
            if name and self.namespace_versioning:
                await self.client.incr(self._version_key(name))

            keys = [key async for key in self._scan(namespace)]
            removed = 0
            for start in range(0, len(keys), _SCAN_BATCH):
                removed += int(await self.client.delete(*keys[start : start + _SCAN_BATCH]))

            if not name:
                # Full clear also drops the namespace version counters
                async for key in self.client.scan_iter(
                    match=escape_pattern(self._version_key("")) + "*"
                ):
                    await self.client.delete(key)

        logger.info(
            "Cleared Redis cache", namespace=namespace, key=hashed_key, removed=removed
        )
        return removed

    async def size(self, namespace: Optional[str] = None) -> int:
        with self._backend_errors("size"):
            keys = [key async for key in self._scan(namespace)]
            if not keys:
                return 0
            pipe = self.client.pipeline()
            for key in keys:
                pipe.strlen(key)
            results = await pipe.execute()
        return sum(int(length) for length in results)

    async def count(self, namespace: Optional[str] = None) -> int:
        with self._backend_errors("count"):
            return sum([1 async for _ in self._scan(namespace)])

    async def close(self) -> None:
        with self._backend_errors("close"):
            await self.client.aclose()
