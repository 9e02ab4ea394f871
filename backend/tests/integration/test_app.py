"""
Integration tests for the FastAPI application.

Pages are registered on the test app; their ETags are derived from this
module's source file.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Depends, Request
from fastapi.testclient import TestClient

from pagecache.api.dependencies import (
    conditional_request,
    endpoint_resource,
    get_page_cache,
    get_response_state,
    load_flash_messages,
)
from pagecache.core.config import Settings
from pagecache.domain.cache.exceptions import BackendUnavailableException
from pagecache.infrastructure.stores.filesystem_store import FilesystemStore
from pagecache.main import create_app
from pagecache.services.cache.cache_facade import CacheFacade
from pagecache.services.cache.page_cache import PageCache
from pagecache.services.http.response_state import ResponseState

pytestmark = pytest.mark.integration


def add_test_pages(app, renders):
    @app.get("/pages/home")
    async def home(
        request: Request,
        state: ResponseState = Depends(get_response_state),
        page_cache: PageCache = Depends(get_page_cache),
    ):
        cached = await page_cache.show_page(request, state, endpoint_resource(request))
        if cached is not None:
            return cached
        renders.append(request.url.path)
        return await page_cache.store_page("<h1>Home</h1>", request, state)

    @app.get("/pages/plain", dependencies=[Depends(conditional_request())])
    async def plain():
        renders.append("/pages/plain")
        return {"page": "plain"}

    @app.get("/pages/versioned", dependencies=[Depends(conditional_request(salt="v2"))])
    async def versioned():
        return {"page": "versioned"}

    @app.get("/api/items", dependencies=[Depends(conditional_request())])
    async def items():
        return {"items": []}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENVIRONMENT="test",
        PROJECT_ID="pagecache-test",
        CACHE_METHOD="filesystem",
        DATA_DIR=tmp_path,
    )


@pytest.fixture
def renders():
    return []


@pytest.fixture
def client(settings, renders):
    app = create_app(settings)
    add_test_pages(app, renders)
    with TestClient(app) as test_client:
        yield test_client


def failing_facade(settings):
    store = MagicMock(spec=FilesystemStore)
    store.name = "filesystem"
    store.enabled = True
    error = BackendUnavailableException(message="disk gone", backend="filesystem")
    store.count = AsyncMock(side_effect=error)
    store.size = AsyncMock(side_effect=error)
    store.close = AsyncMock()
    return CacheFacade(settings.cache_config(), store=store)


class TestConditionalPages:
    """ETag negotiation through the HTTP stack."""

    def test_first_request_renders_with_etag(self, client, renders):
        response = client.get("/pages/home")

        assert response.status_code == 200
        assert response.text == "<h1>Home</h1>"
        assert response.headers["etag"].startswith('"')
        assert response.headers["cache-control"] == (
            "private, max-age=604800, must-revalidate, no-transform"
        )
        assert "last-modified" in response.headers
        assert renders == ["/pages/home"]

    def test_matching_etag_gets_empty_304(self, client, renders):
        etag = client.get("/pages/home").headers["etag"]

        response = client.get("/pages/home", headers={"If-None-Match": etag})
        assert response.status_code == 304
        assert response.content == b""
        assert response.headers["etag"] == etag
        assert renders == ["/pages/home"]

    def test_second_request_served_from_cache(self, client, renders):
        first = client.get("/pages/home")
        second = client.get("/pages/home")

        assert second.status_code == 200
        assert second.text == first.text
        assert renders == ["/pages/home"]

    def test_flash_cookie_forces_full_response(self, client):
        etag = client.get("/pages/home").headers["etag"]

        response = client.get(
            "/pages/home", headers={"If-None-Match": etag, "Cookie": "flash=Saved"}
        )
        assert response.status_code == 200
        assert response.text == "<h1>Home</h1>"

    def test_plain_endpoint_headers_from_middleware(self, client, renders):
        response = client.get("/pages/plain")
        assert response.status_code == 200
        etag = response.headers["etag"]

        not_modified = client.get("/pages/plain", headers={"If-None-Match": etag})
        assert not_modified.status_code == 304
        assert not_modified.content == b""
        assert renders == ["/pages/plain"]

    def test_salt_changes_etag(self, client):
        plain = client.get("/pages/plain").headers["etag"]
        versioned = client.get("/pages/versioned").headers["etag"]
        assert plain != versioned

        response = client.get("/pages/versioned", headers={"If-None-Match": plain})
        assert response.status_code == 200

    def test_ajax_requests_are_not_negotiated(self, client):
        etag = client.get("/pages/plain").headers["etag"]

        response = client.get(
            "/pages/plain",
            headers={"If-None-Match": etag, "X-Requested-With": "XMLHttpRequest"},
        )
        assert response.status_code == 200
        assert "etag" not in response.headers
        assert "cache-control" not in response.headers

    def test_api_requests_are_not_negotiated(self, client):
        response = client.get("/api/items", headers={"If-None-Match": "*"})
        assert response.status_code == 200
        assert "etag" not in response.headers

    def test_error_responses_are_not_cacheable(self, client):
        response = client.get("/pages/missing")
        assert response.status_code == 404
        assert "etag" not in response.headers

    def test_http_cache_disabled(self, tmp_path, renders):
        settings = Settings(
            CACHE_METHOD="disabled", DATA_DIR=tmp_path, HTTP_CACHE_ENABLED=False
        )
        app = create_app(settings)
        add_test_pages(app, renders)
        with TestClient(app) as client:
            response = client.get("/pages/plain", headers={"If-None-Match": "*"})
        assert response.status_code == 200
        assert "etag" not in response.headers
        assert "cache-control" not in response.headers


class TestAdminEndpoints:
    """Cache operator endpoints."""

    def test_stats_clear_and_purge(self, client):
        client.get("/pages/home")

        stats = client.get("/admin/cache/stats").json()
        assert stats["method"] == "filesystem"
        assert stats["count"] == 1
        assert stats["size"] > len("<h1>Home</h1>")

        assert client.get("/admin/cache/stats?namespace=htmlpage").json()["count"] == 1
        assert client.post("/admin/cache/purge").json()["removed"] == 0

        cleared = client.delete("/admin/cache", params={"namespace": "htmlpage"})
        assert cleared.status_code == 200
        assert cleared.json()["removed"] == 1
        assert client.get("/admin/cache/stats").json()["count"] == 0

    def test_clear_single_key(self, client):
        client.get("/pages/home")
        response = client.delete(
            "/admin/cache", params={"key": "/pages/home", "namespace": "htmlpage"}
        )
        assert response.json()["removed"] == 1

    def test_clear_with_empty_key_is_bad_request(self, client):
        client.get("/pages/home")
        response = client.delete("/admin/cache", params={"key": ""})
        assert response.status_code == 400
        assert response.json()["error"] == "CACHE_MISSING_KEY"
        assert client.get("/admin/cache/stats").json()["count"] == 1

    def test_invalid_namespace_is_bad_request(self, client):
        response = client.get("/admin/cache/stats", params={"namespace": "../etc"})
        assert response.status_code == 400
        assert response.json()["error"] == "CACHE_INVALID_NAMESPACE"

    def test_backend_failure_is_service_unavailable(self, settings):
        app = create_app(settings, cache=failing_facade(settings))
        with TestClient(app) as client:
            response = client.get("/admin/cache/stats")
        assert response.status_code == 503
        assert response.json()["error"] == "CACHE_BACKEND_UNAVAILABLE"


class TestHealthEndpoints:
    """Health endpoints."""

    def test_liveness(self, client):
        body = client.get("/health/").json()
        assert body["status"] == "healthy"
        assert body["service"] == "pagecache"

    def test_cache_health(self, client):
        body = client.get("/health/cache").json()
        assert body["method"] == "filesystem"
        assert body["enabled"] is True
        assert body["entries"] == 0

    def test_cache_health_backend_down(self, settings):
        app = create_app(settings, cache=failing_facade(settings))
        with TestClient(app) as client:
            response = client.get("/health/cache")
        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "CACHE_BACKEND_UNAVAILABLE"


class TestFlashMessages:
    """Flash cookie decoding."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (None, []),
            ("", []),
            ("Saved", ["Saved"]),
            ('["one", "two"]', ["one", "two"]),
            ('["one", ""]', ["one"]),
            ('"quoted"', ["quoted"]),
        ],
    )
    def test_load_flash_messages(self, raw, expected):
        assert load_flash_messages(raw) == expected
