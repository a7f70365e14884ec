"""Prometheus scrape endpoint.

Returns every metric in portal.core.metrics in the text exposition
format, e.g.:

  backend_calls_total{operation="verify_certificate",outcome="ok"} 12.0
  certificate_verifications_total{result="inactive"} 3.0

Left open here; restrict it at the ingress in production.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
