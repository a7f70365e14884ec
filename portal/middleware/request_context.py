"""Request context middleware: assigns a unique ID to every request.

The ID lives in a ContextVar so any code in the async call chain can
read it without threading it through every signature.  Two consumers:

  - _RequestContextFilter stamps it onto every LogRecord, so interleaved
    log lines from concurrent requests can be told apart.
  - portal.services.api_client forwards it as X-Request-ID on each call
    to the certificate backend, so one user action can be traced across
    the portal and the backend logs.

ContextVar rather than threading.local(): concurrent requests share the
event-loop thread, and each asyncio task gets its own copy of the var.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class _RequestContextFilter(logging.Filter):
    """Logging filter that injects the current request ID into every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


# Install on the root logger so all loggers inherit it; guard against
# duplicate installation across module reloads.
root_logger = logging.getLogger()
if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
    root_logger.addFilter(_RequestContextFilter())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, time the request, log a completion line.

    1. Reads X-Request-ID (if the browser/proxy sent one) or generates a UUID
    2. Stores it in request_id_var
    3. Times the request and logs method, path, status, duration
    4. Echoes X-Request-ID on the response
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(req_id)

        start = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
