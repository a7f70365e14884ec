"""Health and readiness endpoints.

/health (liveness) answers as long as the process can respond.  It
also reports what the portal depends on:

  checks.redis    ok | degraded | not_configured
  backend.url     where backend calls go
  backend.*       per-process counts of backend calls, from the
                  Prometheus registry

/health always returns 200; ``status`` says whether anything is
degraded.  The remote API is not probed here: a /health that calls the
backend would turn a backend outage into a portal restart loop.
Instead, ``backend.network_errors`` shows how often recent calls failed
to reach it.

/ready (readiness) is 200 whenever the process is up.  Redis is
optional (the token store falls back to memory), so it does not gate
traffic.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from prometheus_client import REGISTRY

from portal.core.config import SETTINGS
from portal.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _sum_counter(metric_name: str, label_filter: dict | None = None) -> float:
    """Sum a counter's samples across every label combination.

    Example: _sum_counter("backend_calls_total", {"outcome": "network"})
    counts every backend call that failed to reach the backend,
    whatever the operation.
    """
    total = 0.0
    for metric in REGISTRY.collect():
        for sample in metric.samples:
            if sample.name != metric_name:
                continue
            if label_filter and not all(
                sample.labels.get(k) == v for k, v in label_filter.items()
            ):
                continue
            total += sample.value
    return total


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            logger.warning("Redis ping failed", exc_info=True)
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    return {
        "status": overall,
        "checks": checks,
        "backend": {
            "url": SETTINGS.api_base_url,
            "timeout_seconds": SETTINGS.api_timeout_seconds,
            "calls": int(_sum_counter("backend_calls_total")),
            "network_errors": int(
                _sum_counter("backend_calls_total", {"outcome": "network"})
            ),
        },
    }


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)
