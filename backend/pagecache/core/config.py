"""
pagecache Configuration

Configuration management with environment variable support.
Settings are read once and turned into explicit config objects that are
passed to the cache and HTTP layers at composition time.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from pathlib import Path
from typing import Optional
from functools import lru_cache
from dotenv import load_dotenv

from ..domain.cache.value_objects import CacheConfig, CacheMethod, HttpCacheConfig

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Application environment"
    )
    PROJECT_ID: str = Field(
        default="pagecache", description="Project identity mixed into ETags"
    )
    DATA_DIR: Path = Field(default=Path("data"), description="Data root directory")

    # Cache configuration
    CACHE_METHOD: str = Field(
        default="filesystem",
        description="Cache backend: disabled, filesystem or external",
    )
    CACHE_MAX_AGE: int = Field(
        default=86400, ge=1, description="Default cache entry max age in seconds"
    )
    CACHE_KEY_HASH: Optional[str] = Field(
        default=None, description="Opt-in hashlib algorithm for cache keys (empty: raw keys)"
    )
    CACHE_KEY_INTERLACE: int = Field(
        default=0, ge=0, le=32, description="Key interlace factor"
    )

    # External (Redis) backend configuration
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    REDIS_KEY_PREFIX: str = Field(
        default="pagecache:", description="Prefix for all cache keys in Redis"
    )
    REDIS_NAMESPACE_VERSIONING: bool = Field(
        default=True, description="Invalidate namespaces by version counter"
    )

    # HTTP caching configuration
    HTTP_CACHE_ENABLED: bool = Field(
        default=True, description="Enable ETag negotiation and cache headers"
    )
    HTTP_CACHE_CACHEABILITY: str = Field(default="private")
    HTTP_CACHE_EXPIRATION: str = Field(default="max-age=604800")
    HTTP_CACHE_REVALIDATION: str = Field(default="must-revalidate")
    HTTP_CACHE_OTHER: str = Field(default="no-transform")

    # API configuration
    API_PREFIX: str = Field(default="/api", description="Prefix of API calls")
    ADMIN_PREFIX: str = Field(default="/admin", description="Prefix of admin pages")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    @property
    def cache_root(self) -> Path:
        """Filesystem cache root."""
        return self.DATA_DIR / "cache"

    def cache_config(self) -> CacheConfig:
        """Build the cache configuration.

        Raises:
            UnknownBackendException: If CACHE_METHOD names no known backend
        """
        return CacheConfig(
            method=CacheMethod.parse(self.CACHE_METHOD),
            max_age=self.CACHE_MAX_AGE,
            key_hash=self.CACHE_KEY_HASH,
            key_interlace=self.CACHE_KEY_INTERLACE,
            root=self.cache_root,
            redis_url=self.REDIS_URL,
            redis_key_prefix=self.REDIS_KEY_PREFIX,
            redis_namespace_versioning=self.REDIS_NAMESPACE_VERSIONING,
        )

    def http_cache_config(self) -> HttpCacheConfig:
        """Build the HTTP caching configuration."""
        return HttpCacheConfig(
            enabled=self.HTTP_CACHE_ENABLED,
            cacheability=self.HTTP_CACHE_CACHEABILITY,
            expiration=self.HTTP_CACHE_EXPIRATION,
            revalidation=self.HTTP_CACHE_REVALIDATION,
            other=self.HTTP_CACHE_OTHER,
            api_prefix=self.API_PREFIX,
            admin_prefix=self.ADMIN_PREFIX,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
