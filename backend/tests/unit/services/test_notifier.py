"""
Unit tests for the operator notifier.
"""

from unittest.mock import patch

from prometheus_client import REGISTRY

from pagecache.domain.cache.exceptions import BackendUnavailableException
from pagecache.services.cache import notifier as notifier_module
from pagecache.services.cache.notifier import LogNotifier


def notification_count(error_code):
    value = REGISTRY.get_sample_value(
        "pagecache_operator_notifications_total", {"error_code": error_code}
    )
    return value or 0


class TestLogNotifier:
    """Test LogNotifier."""

    def test_logs_and_counts(self):
        cause = BackendUnavailableException(message="disk gone", backend="filesystem")
        before = notification_count("CACHE_BACKEND_UNAVAILABLE")

        with patch.object(notifier_module, "logger") as mock_logger:
            LogNotifier().notify(cause, operation="write", key="greeting")

        assert notification_count("CACHE_BACKEND_UNAVAILABLE") == before + 1
        mock_logger.error.assert_called_once()
        kwargs = mock_logger.error.call_args.kwargs
        assert kwargs["error_code"] == "CACHE_BACKEND_UNAVAILABLE"
        assert kwargs["operation"] == "write"
        assert kwargs["exc_info"] is cause

    def test_plain_exceptions_use_type_name(self):
        with patch.object(notifier_module, "logger") as mock_logger:
            LogNotifier().notify(RuntimeError("boom"))

        assert mock_logger.error.call_args.kwargs["error_code"] == "RuntimeError"
