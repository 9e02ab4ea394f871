"""
Operator notification channel for swallowed cache failures.
"""

from typing import Any, Protocol

import structlog

from ...monitoring.cache_metrics import operator_notifications_total

logger = structlog.get_logger(__name__)


class OperatorNotifier(Protocol):
    """Receives failures the cache degraded around."""

    def notify(self, cause: BaseException, **context: Any) -> None:
        ...


class LogNotifier:
    """Default notifier: structured error log plus a Prometheus counter."""

    def notify(self, cause: BaseException, **context: Any) -> None:
        error_code = getattr(cause, "error_code", None) or type(cause).__name__
        operator_notifications_total.labels(error_code=error_code).inc()
        logger.error(
            "Cache failure, continuing without cache",
            error=str(cause),
            error_code=error_code,
            exc_info=cause,
            **context,
        )
