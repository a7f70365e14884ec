"""Rendering PortalError as an HTTP response.

Services raise; this is the one seam where errors become responses.
The body always has the user-facing message plus the discriminating
code, so a front-end can show one message yet still decide whether to
offer "try again":

    {"detail": "Request has already been approved", "code": "conflict"}
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from portal.services.errors import PortalError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "precondition": 400,
    "validation": 422,
    "conflict": 409,
    "not_found": 404,
    "unauthorized": 401,
    "network": 502,
}


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info(
        "Portal error  path=%s code=%s message=%s",
        request.url.path,
        exc.code,
        exc.user_message,
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.code == "unauthorized" else None
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.user_message, "code": exc.code},
        headers=headers,
    )
