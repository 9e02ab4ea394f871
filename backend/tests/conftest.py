"""
Main pytest configuration for pagecache tests.

Fixtures for stores, facades, clocks and the FastAPI application.
"""

import os
import tempfile

import pytest

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["PROJECT_ID"] = "pagecache-test"
os.environ["CACHE_METHOD"] = "disabled"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="pagecache-test-")

from pagecache.domain.cache.value_objects import CacheConfig, CacheMethod, HttpCacheConfig
from pagecache.infrastructure.stores.filesystem_store import FilesystemStore
from pagecache.services.cache.cache_facade import CacheFacade
from pagecache.services.http.negotiator import ConditionalNegotiator


class FakeClock:
    """Manually advanced clock returning Unix seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNotifier:
    """Operator notifier that keeps what it was sent."""

    def __init__(self):
        self.notifications = []

    def notify(self, cause, **context):
        self.notifications.append((cause, context))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def cache_root(tmp_path):
    return tmp_path / "cache"


@pytest.fixture
def cache_config(cache_root):
    """Filesystem cache configuration rooted in a temporary directory."""
    return CacheConfig(
        method=CacheMethod.FILESYSTEM,
        max_age=86400,
        key_hash=None,
        key_interlace=2,
        root=cache_root,
    )


@pytest.fixture
def filesystem_store(cache_root, clock):
    return FilesystemStore(cache_root, max_age=86400, clock=clock)


@pytest.fixture
def cache_facade(cache_config, filesystem_store, notifier):
    """Facade over a filesystem store driven by the fake clock."""
    return CacheFacade(cache_config, store=filesystem_store, notifier=notifier)


@pytest.fixture
def http_cache_config():
    return HttpCacheConfig()


@pytest.fixture
def negotiator(http_cache_config):
    return ConditionalNegotiator(http_cache_config, "pagecache-test")
