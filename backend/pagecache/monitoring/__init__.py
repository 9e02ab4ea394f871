"""
Monitoring: Prometheus metrics for cache operations.
"""

from .cache_metrics import (
    cache_requests_total,
    cache_degraded_operations_total,
    cache_operation_duration,
    http_not_modified_total,
    operator_notifications_total,
)

__all__ = [
    "cache_requests_total",
    "cache_degraded_operations_total",
    "cache_operation_duration",
    "http_not_modified_total",
    "operator_notifications_total",
]
