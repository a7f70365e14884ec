"""Public verification endpoint.

GET /verify/{verification_id} answers 200 with a verdict, even when the
certificate does not exist or the backend is down.  ``valid`` is true
only for an ACTIVE certificate; ``code`` says why it is not.

A blank ID is the one exception: 400 with code ``precondition``, since
nothing was looked up.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.api.certificates import CertificateOut
from portal.api.dependencies import get_api_client
from portal.services import verification
from portal.services.api_client import ApiClient

router = APIRouter(tags=["verification"])


class VerificationOut(BaseModel):
    valid: bool
    reason: str | None = None
    code: str | None = None
    detail: str | None = None
    displayStatus: str | None = None
    certificate: CertificateOut | None = None


@router.get("/verify/{verification_id}", response_model=VerificationOut)
async def verify_certificate(
    verification_id: str,
    client: Annotated[ApiClient, Depends(get_api_client)],
) -> VerificationOut:
    result = await verification.verify(client, verification_id)

    cert = CertificateOut.from_record(result.certificate) if result.certificate else None
    if isinstance(result, verification.Verified):
        return VerificationOut(
            valid=True,
            certificate=cert,
            displayStatus=cert.displayStatus if cert else None,
        )
    return VerificationOut(
        valid=False,
        reason=result.reason,
        code=result.code,
        detail=result.detail,
        certificate=cert,
        displayStatus=cert.displayStatus if cert else None,
    )
