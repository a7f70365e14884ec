"""Certificate request workflow: create, approve, reject.

A request moves PENDING -> APPROVED or PENDING -> REJECTED exactly once.
The backend enforces that; a second transition on a terminal request
comes back as ConflictError (see api_client.classify_failure), never as
a silent success.

Client-side preconditions are checked before anything is sent and raise
PreconditionError, so callers can tell "fix your input before we even
try" apart from a server ValidationError, a NetworkError ("try again")
and a ConflictError ("nothing to do").

Approval mints a certificate on the backend.  The portal does not build
that record itself; it returns whatever the backend sent and callers
re-fetch lists afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any
from urllib.parse import quote

from portal.models.certificate import CertificateRecord, ordered_skills
from portal.models.certificate_request import CertificateRequest
from portal.services.api_client import ApiClient
from portal.services.certificates import check_date_order, coerce_date, require_date
from portal.services.errors import PreconditionError, ResponseFormatError

logger = logging.getLogger(__name__)


def _request_path(request_id: str, action: str) -> str:
    rid = (request_id or "").strip()
    if not rid:
        raise PreconditionError("Request ID is required")
    return f"/certificate-requests/{quote(rid, safe='')}/{action}"


def _parse_requests(raw: Any) -> list[CertificateRequest]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ResponseFormatError("Expected a list of certificate requests")
    return [CertificateRequest.from_payload(p) for p in raw]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def create(
    client: ApiClient,
    *,
    issuer_username: str,
    request_message: str,
    skills: Iterable[str],
) -> CertificateRequest:
    issuer = (issuer_username or "").strip()
    if not issuer:
        raise PreconditionError("Issuer username is required")
    message = (request_message or "").strip()
    if not message:
        raise PreconditionError("Request message is required")
    wanted = ordered_skills(skills)
    if not wanted:
        raise PreconditionError("At least one skill is required")

    raw = await client.post(
        "/certificate-requests",
        json={
            "issuerUsername": issuer,
            "requestMessage": message,
            "skills": list(wanted),
        },
        operation="create_request",
        fallback="Failed to submit certificate request",
    )
    req = CertificateRequest.from_payload(raw)
    logger.info("Certificate request created  id=%s issuer=%s", req.id, issuer)
    return req


# ---------------------------------------------------------------------------
# Approve / reject
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ApprovalData:
    certificate_name: str
    issued_date: date | str
    description: str = ""
    expiry_date: date | str | None = None

    def to_payload(self) -> dict[str, Any]:
        name = (self.certificate_name or "").strip()
        if not name:
            raise PreconditionError("Certificate name is required")
        issued = require_date(self.issued_date, "Issue date")
        expiry = coerce_date(self.expiry_date, "Expiry date")
        check_date_order(issued, expiry)

        payload: dict[str, Any] = {
            "certificateName": name,
            "description": self.description or "",
            "issuedDate": issued.isoformat(),
        }
        if expiry is not None:
            payload["expiryDate"] = expiry.isoformat()
        return payload


@dataclass(frozen=True, slots=True)
class ApprovalOutcome:
    """What the backend sent back after an approval.

    Depending on the backend version this is the minted certificate or
    the updated request; exactly one of the two is set.
    """

    request_id: str
    certificate: CertificateRecord | None = None
    request: CertificateRequest | None = None


async def approve(
    client: ApiClient, request_id: str, data: ApprovalData
) -> ApprovalOutcome:
    path = _request_path(request_id, "approve")
    payload = data.to_payload()
    raw = await client.post(
        path,
        json=payload,
        operation="approve_request",
        fallback="Failed to approve request",
    )

    if isinstance(raw, Mapping) and "requesterUsername" in raw:
        outcome = ApprovalOutcome(
            request_id=request_id, request=CertificateRequest.from_payload(raw)
        )
    elif raw is None:
        outcome = ApprovalOutcome(request_id=request_id)
    else:
        outcome = ApprovalOutcome(
            request_id=request_id, certificate=CertificateRecord.from_payload(raw)
        )
    logger.info("Certificate request approved  id=%s", request_id)
    return outcome


async def reject(client: ApiClient, request_id: str, reason: str) -> CertificateRequest:
    path = _request_path(request_id, "reject")
    text = (reason or "").strip()
    if not text:
        raise PreconditionError("Rejection reason is required")

    raw = await client.post(
        path,
        json={"rejectionReason": text},
        operation="reject_request",
        fallback="Failed to reject request",
    )
    req = CertificateRequest.from_payload(raw)
    logger.info("Certificate request rejected  id=%s", request_id)
    return req


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


async def my_requests(client: ApiClient) -> list[CertificateRequest]:
    raw = await client.get(
        "/certificate-requests/my-requests",
        operation="list_my_requests",
        fallback="Failed to load your requests",
    )
    return _parse_requests(raw)


async def pending(client: ApiClient) -> list[CertificateRequest]:
    raw = await client.get(
        "/certificate-requests/pending",
        operation="list_pending_requests",
        fallback="Failed to load pending requests",
    )
    return _parse_requests(raw)


async def all_for_issuer(client: ApiClient) -> list[CertificateRequest]:
    raw = await client.get(
        "/certificate-requests/all",
        operation="list_all_requests",
        fallback="Failed to load requests",
    )
    return _parse_requests(raw)
