"""
Disabled cache store: every read misses, every write passes its value through.
"""

from typing import Optional

from ...domain.cache.repository_interfaces import CacheStore


class DisabledStore(CacheStore):
    """Pass-through store used when caching is switched off."""

    name = "disabled"

    @property
    def enabled(self) -> bool:
        return False

    async def get(
        self, hashed_key: str, namespace: Optional[str] = None
    ) -> Optional[bytes]:
        return None

    async def put(
        self,
        value: bytes,
        hashed_key: str,
        namespace: Optional[str] = None,
        max_age: Optional[int] = None,
    ) -> bytes:
        return value

    async def clear(
        self, hashed_key: Optional[str] = None, namespace: Optional[str] = None
    ) -> int:
        return 0

    async def size(self, namespace: Optional[str] = None) -> int:
        return 0

    async def count(self, namespace: Optional[str] = None) -> int:
        return 0
