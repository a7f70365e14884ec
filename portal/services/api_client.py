"""HTTP client for the remote certificate backend.

Every backend response is wrapped in the same envelope:

    {"success": true, "message": "...", "data": <payload>}

ApiClient unwraps it and returns ``data``, or raises one of the
portal.services.errors classes.  Classification:

    transport error / timeout / 5xx      -> NetworkError
    2xx with unparseable body             -> ResponseFormatError
    401, 403                              -> UnauthorizedError
    404                                   -> NotFoundError
    409, or any 4xx/5xx whose message
    says the entity "has already been"    -> ConflictError
    other 4xx, or 2xx with success=false  -> ValidationError

The "already been" rule exists because the backend reports a second
approve/reject on a terminal request as an IllegalStateException with
the message "Request has already been approved|rejected", not as a 409.

Each call opens its own httpx.AsyncClient.  There is no retry; callers
surface the error and let the user resubmit.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any

import httpx

from portal.core.config import SETTINGS
from portal.core.metrics import BACKEND_CALLS, BACKEND_DURATION
from portal.middleware.request_context import request_id_var
from portal.services.errors import (
    ConflictError,
    NetworkError,
    NotFoundError,
    PortalError,
    ResponseFormatError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_UNREACHABLE = "Could not reach the certificate service. Please try again."
_CONFLICT_MARKER = "already been"


def _envelope_message(body: Any) -> str | None:
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


def classify_failure(status_code: int, message: str | None, fallback: str) -> PortalError:
    """Map a failed backend response to the matching PortalError."""
    text = message or fallback

    if status_code in (401, 403):
        return UnauthorizedError(text, status_code=status_code)
    if status_code == 404:
        return NotFoundError(text, status_code=status_code)
    if status_code == 409 or (message and _CONFLICT_MARKER in message.lower()):
        return ConflictError(text, status_code=status_code)
    if status_code >= 500:
        return NetworkError(text, status_code=status_code)
    return ValidationError(text, status_code=status_code)


@dataclass(frozen=True)
class ApiClient:
    """Bearer-authenticated JSON client bound to one backend base URL.

    Immutable: use ``with_token`` to get a client for another session.
    ``transport`` is for tests (httpx.ASGITransport / MockTransport).
    """

    base_url: str
    token: str | None = None
    timeout: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def with_token(self, token: str | None) -> ApiClient:
        return replace(self, token=token)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        req_id = request_id_var.get("-")
        if req_id != "-":
            headers["X-Request-ID"] = req_id
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        fallback: str,
        json: Any = None,
        files: Any = None,
    ) -> Any:
        """Send one request and return the envelope's ``data``.

        ``operation`` labels logs and metrics; ``fallback`` is the user
        message used when the backend does not provide one.
        """
        start = time.monotonic()
        outcome = "ok"
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                resp = await client.request(
                    method, path, json=json, files=files, headers=self._headers()
                )
            return self._unwrap(resp, operation=operation, fallback=fallback)
        except httpx.TimeoutException:
            outcome = NetworkError.code
            logger.warning(
                "Backend call timed out  op=%s path=%s",
                operation,
                path,
                extra={"backend_operation": operation},
            )
            raise NetworkError(_UNREACHABLE) from None
        except httpx.TransportError as e:
            outcome = NetworkError.code
            logger.warning(
                "Backend unreachable  op=%s path=%s error=%s",
                operation,
                path,
                e,
                extra={"backend_operation": operation},
            )
            raise NetworkError(_UNREACHABLE) from None
        except PortalError as e:
            outcome = e.code
            raise
        finally:
            BACKEND_CALLS.labels(operation=operation, outcome=outcome).inc()
            BACKEND_DURATION.labels(operation=operation).observe(
                time.monotonic() - start
            )

    def _unwrap(self, resp: httpx.Response, *, operation: str, fallback: str) -> Any:
        body: Any = None
        if resp.content:
            try:
                body = resp.json()
            except ValueError:
                body = None

        if resp.is_success:
            if not resp.content:
                return None
            if not isinstance(body, dict):
                logger.warning(
                    "Unparseable backend response  op=%s status=%d",
                    operation,
                    resp.status_code,
                    extra={"backend_operation": operation, "backend_status": resp.status_code},
                )
                raise ResponseFormatError(fallback, status_code=resp.status_code)
            if body.get("success") is False:
                # Envelope-level failure on a 2xx; treat as a rejected input
                err = classify_failure(400, _envelope_message(body), fallback)
                self._log_failure(operation, resp.status_code, err)
                raise err
            return body.get("data")

        err = classify_failure(resp.status_code, _envelope_message(body), fallback)
        self._log_failure(operation, resp.status_code, err)
        raise err

    @staticmethod
    def _log_failure(operation: str, status_code: int, err: PortalError) -> None:
        logger.warning(
            "Backend call failed  op=%s status=%d code=%s message=%s",
            operation,
            status_code,
            err.code,
            err.user_message,
            extra={"backend_operation": operation, "backend_status": status_code},
        )

    async def get(self, path: str, *, operation: str, fallback: str) -> Any:
        return await self.request("GET", path, operation=operation, fallback=fallback)

    async def post(
        self,
        path: str,
        *,
        operation: str,
        fallback: str,
        json: Any = None,
        files: Any = None,
    ) -> Any:
        return await self.request(
            "POST", path, operation=operation, fallback=fallback, json=json, files=files
        )

    async def put(
        self, path: str, *, operation: str, fallback: str, json: Any = None
    ) -> Any:
        return await self.request(
            "PUT", path, operation=operation, fallback=fallback, json=json
        )

    async def delete(self, path: str, *, operation: str, fallback: str) -> Any:
        return await self.request("DELETE", path, operation=operation, fallback=fallback)


def build_api_client(
    token: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ApiClient:
    """Client configured from SETTINGS."""
    return ApiClient(
        base_url=SETTINGS.api_base_url,
        token=token,
        timeout=SETTINGS.api_timeout_seconds,
        transport=transport,
    )
