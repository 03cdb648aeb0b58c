"""Prometheus metric inventory.

HTTP metrics are populated by MetricsMiddleware; entity metrics are
incremented by ConsoleService at the point a mutation succeeds.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Entity metrics
# ---------------------------------------------------------------------------

ENTITY_MUTATIONS = Counter(
    "entity_mutations_total",
    "Successful entity mutations by kind and operation",
    ["kind", "operation"],  # operation: create|update|delete
)

CASCADE_DELETIONS = Counter(
    "cascade_deleted_total",
    "Records removed as dependents of another delete",
    ["kind"],
)

REJECTED_MUTATIONS = Counter(
    "entity_mutations_rejected_total",
    "Mutations rejected before any state change",
    ["kind", "reason"],  # reason: validation|duplicate_email|duplicate_enrollment
)

STORE_READ_FALLBACKS = Counter(
    "store_read_fallbacks_total",
    "Reads that degraded to an empty result because the store was unreachable",
)
