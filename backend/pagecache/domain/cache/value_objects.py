"""
Cache Value Objects

Immutable value objects for the cache domain.
Provides type safety for namespaces, max ages, backend selection and
write outcomes.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import InvalidNamespaceException, UnknownBackendException

T = TypeVar("T")


class CacheMethod(str, Enum):
    """Cache backend selection."""

    DISABLED = "disabled"
    FILESYSTEM = "filesystem"
    EXTERNAL = "external"

    @classmethod
    def parse(cls, value: Union[str, bool, None, "CacheMethod"]) -> "CacheMethod":
        """Parse a configured method, accepting legacy aliases."""
        if isinstance(value, CacheMethod):
            return value
        if value is None or value is False:
            return cls.DISABLED

        normalized = str(value).strip().lower()
        if normalized in _METHOD_ALIASES:
            return _METHOD_ALIASES[normalized]
        raise UnknownBackendException(value)


_METHOD_ALIASES = {
    "": CacheMethod.DISABLED,
    "0": CacheMethod.DISABLED,
    "false": CacheMethod.DISABLED,
    "off": CacheMethod.DISABLED,
    "none": CacheMethod.DISABLED,
    "disabled": CacheMethod.DISABLED,
    "file": CacheMethod.FILESYSTEM,
    "filesystem": CacheMethod.FILESYSTEM,
    "external": CacheMethod.EXTERNAL,
    "redis": CacheMethod.EXTERNAL,
    "memcached": CacheMethod.EXTERNAL,
}


def normalize_namespace(namespace: Optional[str]) -> str:
    """
    Normalize a namespace to a trailing-slash path segment.

    ``None`` and ``""`` map to the root namespace ``""``.

    Raises:
        InvalidNamespaceException: If the namespace contains backslashes,
            NUL bytes or ``.``/``..`` segments.
    """
    if not namespace:
        return ""

    if "\\" in namespace or "\x00" in namespace:
        raise InvalidNamespaceException(namespace, "contains forbidden characters")

    segments = [segment for segment in namespace.strip("/").split("/") if segment]
    if not segments:
        return ""
    if any(segment in (".", "..") for segment in segments):
        raise InvalidNamespaceException(namespace, "relative path segments")

    return "/".join(segments) + "/"


@dataclass(frozen=True)
class MaxAge:
    """
    Maximum entry age in seconds.

    Seconds are the only time unit used for TTL arithmetic.
    """

    seconds: int

    def __post_init__(self) -> None:
        if self.seconds <= 0:
            raise ValueError("Max age must be positive")

    def is_expired(self, stored_at: float, now: float) -> bool:
        """Return True when an entry stored at ``stored_at`` is stale at ``now``."""
        return now - stored_at > self.seconds

    def __str__(self) -> str:
        return f"{self.seconds}s"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Write succeeded."""

    value: T

    @property
    def degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """Write failed; ``value`` is still handed back to the caller."""

    value: T
    cause: BaseException

    @property
    def degraded(self) -> bool:
        return True


WriteOutcome = Union[Ok[T], Degraded[T]]


class CacheConfig(BaseModel):
    """Explicit cache configuration passed to the facade and stores."""

    model_config = ConfigDict(frozen=True)

    method: CacheMethod = Field(
        default=CacheMethod.FILESYSTEM, description="Cache backend"
    )
    max_age: int = Field(default=86400, gt=0, description="Default max age (seconds)")
    key_hash: Optional[str] = Field(
        default=None, description="hashlib algorithm applied to keys (None: raw keys)"
    )
    key_interlace: int = Field(default=0, ge=0, description="Key interlace factor")
    root: Path = Field(default=Path("data/cache"), description="Filesystem cache root")
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="External backend URL"
    )
    redis_key_prefix: str = Field(
        default="pagecache:", description="Server-side key prefix"
    )
    redis_namespace_versioning: bool = Field(
        default=True, description="Invalidate namespaces by version counter"
    )

    @field_validator("method", mode="before")
    @classmethod
    def parse_method(cls, v: Any) -> CacheMethod:
        return CacheMethod.parse(v)

    @field_validator("key_hash", mode="before")
    @classmethod
    def empty_hash_is_none(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return str(v).strip().lower()

    @property
    def enabled(self) -> bool:
        return self.method != CacheMethod.DISABLED


class HttpCacheConfig(BaseModel):
    """HTTP conditional request and Cache-Control configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Enable ETag negotiation")
    cacheability: str = Field(default="private")
    expiration: str = Field(default="max-age=604800")
    revalidation: str = Field(default="must-revalidate")
    other: str = Field(default="no-transform")
    api_prefix: str = Field(default="/api")
    admin_prefix: str = Field(default="/admin")

    @property
    def cache_control(self) -> str:
        """Cache-Control value for cacheable 200 responses."""
        parts = [self.cacheability, self.expiration, self.revalidation, self.other]
        return ", ".join(part for part in parts if part)
