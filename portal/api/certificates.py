"""Certificate endpoints.

- GET    /certificates/mine          holder's certificates
- GET    /certificates/issued        issuer's certificates
- GET    /certificates/{id}          one certificate
- POST   /certificates/issue         mint a certificate directly (issuer)
- DELETE /certificates/{id}/revoke   revoke (issuer)

Every certificate in a response carries ``displayStatus``, computed at
render time from today's date (see portal.services.lifecycle).  It is a
hint only; ``status`` is what the backend says.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from portal.api.dependencies import require_backend_client
from portal.models.certificate import CertificateRecord
from portal.services import certificates as certificate_service
from portal.services import lifecycle
from portal.services.api_client import ApiClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/certificates", tags=["certificates"])


class CertificateOut(BaseModel):
    id: str
    verificationId: str | None = None
    name: str
    description: str
    status: str
    displayStatus: str
    daysUntilExpiry: int | None = None
    issuedDate: str
    expiryDate: str | None = None
    holderName: str
    holderUsername: str
    issuerName: str
    issuerOrganization: str | None = None
    skills: list[str]
    blockchainHash: str | None = None
    qrCode: str | None = None
    views: int = 0

    @staticmethod
    def from_record(record: CertificateRecord) -> CertificateOut:
        return CertificateOut(
            id=record.id,
            verificationId=record.verification_id,
            name=record.name,
            description=record.description,
            status=record.status.value,
            displayStatus=lifecycle.display_status(record),
            daysUntilExpiry=lifecycle.days_until_expiry(record),
            issuedDate=record.issued_date.isoformat(),
            expiryDate=record.expiry_date.isoformat() if record.expiry_date else None,
            holderName=record.holder.name,
            holderUsername=record.holder.username,
            issuerName=record.issuer.name,
            issuerOrganization=record.issuer.organization,
            skills=list(record.skills),
            blockchainHash=record.blockchain_hash,
            qrCode=record.qr_code,
            views=record.views,
        )


class IssueIn(BaseModel):
    name: str
    recipientEmail: str
    issuedDate: str
    skills: list[str]
    description: str = ""
    expiryDate: str | None = None


@router.get("/mine", response_model=list[CertificateOut])
async def list_my_certificates(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> list[CertificateOut]:
    records = await certificate_service.my_certificates(client)
    return [CertificateOut.from_record(r) for r in records]


@router.get("/issued", response_model=list[CertificateOut])
async def list_issued_certificates(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> list[CertificateOut]:
    records = await certificate_service.issued_certificates(client)
    return [CertificateOut.from_record(r) for r in records]


@router.post(
    "/issue", response_model=CertificateOut, status_code=status.HTTP_201_CREATED
)
async def issue_certificate(
    body: IssueIn,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> CertificateOut:
    record = await certificate_service.issue(
        client,
        certificate_service.IssueData(
            name=body.name,
            recipient_email=body.recipientEmail,
            issued_date=body.issuedDate,
            expiry_date=body.expiryDate,
            skills=body.skills,
            description=body.description,
        ),
    )
    return CertificateOut.from_record(record)


@router.get("/{certificate_id}", response_model=CertificateOut)
async def get_certificate(
    certificate_id: str,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> CertificateOut:
    record = await certificate_service.get_by_id(client, certificate_id)
    return CertificateOut.from_record(record)


@router.delete("/{certificate_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_certificate(
    certificate_id: str,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> Response:
    await certificate_service.revoke(client, certificate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
