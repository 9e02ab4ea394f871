"""
Unit tests for the operator command line.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from pagecache import cli
from pagecache.domain.cache.exceptions import BackendUnavailableException
from pagecache.domain.cache.value_objects import CacheConfig, CacheMethod
from pagecache.services.cache.cache_facade import CacheFacade


@pytest.fixture
def facade(tmp_path):
    config = CacheConfig(method=CacheMethod.FILESYSTEM, root=tmp_path / "cache")
    return CacheFacade(config)


def run_facade_write(facade, value, key, namespace):
    asyncio.run(facade.write(value, key, namespace))


class TestCli:
    """Test pagecache CLI commands."""

    def test_count_and_size(self, facade, capsys):
        run_facade_write(facade, "hello", "greeting", "demo")

        assert cli.main(["count"], cache=facade) == 0
        assert capsys.readouterr().out.strip() == "1"

        assert cli.main(["size", "--namespace", "demo"], cache=facade) == 0
        assert int(capsys.readouterr().out.strip()) > len("hello")

    def test_clear_namespace(self, facade, capsys):
        run_facade_write(facade, "one", "k1", "demo")
        run_facade_write(facade, "two", "k2", "other")

        assert cli.main(["clear", "--namespace", "demo"], cache=facade) == 0
        assert capsys.readouterr().out.strip() == "1"

        cli.main(["count"], cache=facade)
        assert capsys.readouterr().out.strip() == "1"

    def test_clear_with_empty_key_is_an_error(self, facade, capsys):
        run_facade_write(facade, "one", "k1", "demo")

        assert cli.main(["clear", "--key", ""], cache=facade) == 1
        assert "No cache key specified" in capsys.readouterr().err

        cli.main(["count"], cache=facade)
        assert capsys.readouterr().out.strip() == "1"

    def test_purge(self, facade, capsys):
        run_facade_write(facade, "fresh", "k1", "demo")
        assert cli.main(["purge"], cache=facade) == 0
        assert capsys.readouterr().out.strip() == "0"

    def test_backend_error_exit_code(self, capsys):
        cache = MagicMock(spec=CacheFacade)
        cache.count = AsyncMock(
            side_effect=BackendUnavailableException(message="Redis count failed")
        )
        cache.close = AsyncMock()

        assert cli.main(["count"], cache=cache) == 1
        assert "Redis count failed" in capsys.readouterr().err
        cache.close.assert_awaited_once()

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.main([])
