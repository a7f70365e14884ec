"""Application metrics using the Prometheus client library.

All metrics are defined here, one inventory for everything the portal
measures.  Other modules import specific metrics and increment/observe
them at the point of action.

Two families:

  HTTP metrics: what the portal's own callers experience (populated by
  MetricsMiddleware).

  Backend metrics: what the portal sees from the remote certificate API.
  Every outgoing call lands in BACKEND_CALLS with an outcome label that
  matches the error code of the failure (network, validation, conflict,
  not_found, unauthorized), or "ok".  A spike in outcome="network" means
  the backend is down; a spike in outcome="conflict" means users are
  double-clicking approve.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
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
# Backend metrics
# ---------------------------------------------------------------------------

BACKEND_CALLS = Counter(
    "backend_calls_total",
    "Calls to the certificate backend by operation and outcome",
    ["operation", "outcome"],  # outcome: ok | network | validation | conflict | ...
)

BACKEND_DURATION = Histogram(
    "backend_call_duration_seconds",
    "Certificate backend call duration in seconds",
    ["operation"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

VERIFICATION_RESULTS = Counter(
    "certificate_verifications_total",
    "Certificate verification attempts by result",
    ["result"],  # verified | inactive | not_found | network | ...
)
