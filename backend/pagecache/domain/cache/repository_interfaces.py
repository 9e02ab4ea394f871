"""
Cache Store Interface

Abstract store contract implemented by every cache backend.
Keys passed to a store are already hashed by the KeyHasher.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CacheStore(ABC):
    """
    Abstract cache store.

    A store maps ``(namespace, hashed_key)`` to a blob. ``get`` returns
    ``None`` for absent or stale entries. Backend failures raise
    BackendUnavailableException.
    """

    name: str = "abstract"

    @property
    def enabled(self) -> bool:
        """Whether the store actually keeps anything."""
        return True

    @abstractmethod
    async def get(
        self, hashed_key: str, namespace: Optional[str] = None
    ) -> Optional[bytes]:
        """Return the stored blob, or None if absent or expired."""
        pass

    @abstractmethod
    async def put(
        self,
        value: bytes,
        hashed_key: str,
        namespace: Optional[str] = None,
        max_age: Optional[int] = None,
    ) -> bytes:
        """Store ``value`` and return it."""
        pass

    @abstractmethod
    async def clear(
        self, hashed_key: Optional[str] = None, namespace: Optional[str] = None
    ) -> int:
        """Remove one entry, a namespace, or everything. Returns removed count."""
        pass

    @abstractmethod
    async def size(self, namespace: Optional[str] = None) -> int:
        """Return the number of stored bytes."""
        pass

    @abstractmethod
    async def count(self, namespace: Optional[str] = None) -> int:
        """Return the number of stored entries."""
        pass

    async def purge_expired(self, namespace: Optional[str] = None) -> int:
        """Remove stale entries. Stores with native expiry remove nothing."""
        return 0

    async def close(self) -> None:
        """Release backend resources."""
        return None
