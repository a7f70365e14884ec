"""Certificate request endpoints.

- POST /requests                   individual asks an issuer for a certificate
- POST /requests/{id}/approve      issuer approves; the backend mints the certificate
- POST /requests/{id}/reject       issuer rejects with a reason
- GET  /requests/mine              requester's own requests
- GET  /requests/pending           issuer's pending queue
- GET  /requests/all               every request addressed to the issuer

Approving or rejecting a request that is no longer PENDING answers 409.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from portal.api.certificates import CertificateOut
from portal.api.dependencies import require_backend_client
from portal.models.certificate_request import CertificateRequest
from portal.services import request_workflow
from portal.services.api_client import ApiClient

router = APIRouter(prefix="/requests", tags=["requests"])


class RequestOut(BaseModel):
    id: str
    requesterUsername: str
    requesterEmail: str
    issuerUsername: str
    requestMessage: str
    skills: list[str]
    status: str
    rejectionReason: str | None = None
    requestedAt: str | None = None
    respondedAt: str | None = None
    paymentAmount: float | None = None
    isPaid: bool = False
    paymentTransactionId: str | None = None
    paidAt: str | None = None

    @staticmethod
    def from_request(req: CertificateRequest) -> RequestOut:
        return RequestOut(**req.to_payload())


class CreateRequestIn(BaseModel):
    issuerUsername: str
    requestMessage: str
    skills: list[str]


class ApproveIn(BaseModel):
    certificateName: str
    issuedDate: str
    description: str = ""
    expiryDate: str | None = None


class RejectIn(BaseModel):
    rejectionReason: str


class ApprovalOut(BaseModel):
    requestId: str
    certificate: CertificateOut | None = None
    request: RequestOut | None = None


@router.post("", response_model=RequestOut, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: CreateRequestIn,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> RequestOut:
    req = await request_workflow.create(
        client,
        issuer_username=body.issuerUsername,
        request_message=body.requestMessage,
        skills=body.skills,
    )
    return RequestOut.from_request(req)


@router.get("/mine", response_model=list[RequestOut])
async def list_my_requests(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> list[RequestOut]:
    return [RequestOut.from_request(r) for r in await request_workflow.my_requests(client)]


@router.get("/pending", response_model=list[RequestOut])
async def list_pending_requests(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> list[RequestOut]:
    return [RequestOut.from_request(r) for r in await request_workflow.pending(client)]


@router.get("/all", response_model=list[RequestOut])
async def list_all_requests(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> list[RequestOut]:
    return [
        RequestOut.from_request(r) for r in await request_workflow.all_for_issuer(client)
    ]


@router.post("/{request_id}/approve", response_model=ApprovalOut)
async def approve_request(
    request_id: str,
    body: ApproveIn,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> ApprovalOut:
    outcome = await request_workflow.approve(
        client,
        request_id,
        request_workflow.ApprovalData(
            certificate_name=body.certificateName,
            issued_date=body.issuedDate,
            description=body.description,
            expiry_date=body.expiryDate,
        ),
    )
    return ApprovalOut(
        requestId=outcome.request_id,
        certificate=(
            CertificateOut.from_record(outcome.certificate) if outcome.certificate else None
        ),
        request=RequestOut.from_request(outcome.request) if outcome.request else None,
    )


@router.post("/{request_id}/reject", response_model=RequestOut)
async def reject_request(
    request_id: str,
    body: RejectIn,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> RequestOut:
    req = await request_workflow.reject(client, request_id, body.rejectionReason)
    return RequestOut.from_request(req)
