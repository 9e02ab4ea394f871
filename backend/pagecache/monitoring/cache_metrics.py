"""
Cache Metrics

Prometheus counters for cache and HTTP caching operations.
Metrics are module-level so repeated facade construction (tests, reloads)
never registers a collector twice.
"""

from prometheus_client import Counter, Histogram

cache_requests_total = Counter(
    "pagecache_requests_total",
    "Cache operations by outcome",
    ["operation", "result"],
)

cache_degraded_operations_total = Counter(
    "pagecache_degraded_operations_total",
    "Cache operations that failed open (backend error converted to pass-through)",
    ["operation"],
)

cache_operation_duration = Histogram(
    "pagecache_operation_duration_seconds",
    "Time spent in cache backend operations",
    ["operation"],
)

http_not_modified_total = Counter(
    "pagecache_not_modified_total",
    "Requests answered with 304 Not Modified",
)

operator_notifications_total = Counter(
    "pagecache_operator_notifications_total",
    "Errors forwarded to the operator channel",
    ["error_code"],
)
