from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from urllib.parse import quote

from portal.models.certificate import CertificateRecord, ordered_skills
from portal.services.api_client import ApiClient
from portal.services.errors import PreconditionError, ResponseFormatError

logger = logging.getLogger(__name__)


def coerce_date(value: date | str | None, field: str) -> date | None:
    """Accept a date or an ISO ``YYYY-MM-DD`` string from user input."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise PreconditionError(f"{field} must be a date (YYYY-MM-DD)") from None


def require_date(value: date | str | None, field: str) -> date:
    parsed = coerce_date(value, field)
    if parsed is None:
        raise PreconditionError(f"{field} is required")
    return parsed


def check_date_order(issued: date, expiry: date | None) -> None:
    if expiry is not None and expiry < issued:
        raise PreconditionError("Expiry date cannot be before the issue date")


def _as_list(payload: object, what: str) -> list:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ResponseFormatError(f"Expected a list of {what}")
    return payload


@dataclass(frozen=True, slots=True)
class IssueData:
    name: str
    recipient_email: str
    issued_date: date | str
    skills: tuple[str, ...] | list[str]
    description: str = ""
    expiry_date: date | str | None = None

    def to_payload(self) -> dict:
        name = (self.name or "").strip()
        if not name:
            raise PreconditionError("Certificate name is required")
        email = (self.recipient_email or "").strip()
        if not email or "@" not in email:
            raise PreconditionError("A valid recipient email is required")
        skills = ordered_skills(self.skills)
        if not skills:
            raise PreconditionError("At least one skill is required")
        issued = require_date(self.issued_date, "Issue date")
        expiry = coerce_date(self.expiry_date, "Expiry date")
        check_date_order(issued, expiry)

        payload: dict = {
            "name": name,
            "description": self.description or "",
            "recipientEmail": email,
            "issuedDate": issued.isoformat(),
            "skills": list(skills),
        }
        if expiry is not None:
            payload["expiryDate"] = expiry.isoformat()
        return payload


async def issue(client: ApiClient, data: IssueData) -> CertificateRecord:
    payload = data.to_payload()
    raw = await client.post(
        "/certificates/issue",
        json=payload,
        operation="issue_certificate",
        fallback="Failed to issue certificate",
    )
    record = CertificateRecord.from_payload(raw)
    logger.info("Certificate issued  id=%s name=%s", record.id, record.name)
    return record


async def get_by_id(client: ApiClient, certificate_id: str) -> CertificateRecord:
    cid = (certificate_id or "").strip()
    if not cid:
        raise PreconditionError("Certificate ID is required")
    raw = await client.get(
        f"/certificates/{quote(cid, safe='')}",
        operation="get_certificate",
        fallback="Certificate not found",
    )
    return CertificateRecord.from_payload(raw)


async def revoke(client: ApiClient, certificate_id: str) -> None:
    """Ask the backend to revoke; the caller re-fetches to see the new status."""
    cid = (certificate_id or "").strip()
    if not cid:
        raise PreconditionError("Certificate ID is required")
    await client.delete(
        f"/certificates/{quote(cid, safe='')}/revoke",
        operation="revoke_certificate",
        fallback="Failed to revoke certificate",
    )
    logger.info("Certificate revoked  id=%s", cid)


async def my_certificates(client: ApiClient) -> list[CertificateRecord]:
    raw = await client.get(
        "/certificates/my-certificates",
        operation="list_my_certificates",
        fallback="Failed to load certificates",
    )
    return [CertificateRecord.from_payload(p) for p in _as_list(raw, "certificates")]


async def issued_certificates(client: ApiClient) -> list[CertificateRecord]:
    raw = await client.get(
        "/certificates/issued",
        operation="list_issued_certificates",
        fallback="Failed to load issued certificates",
    )
    return [CertificateRecord.from_payload(p) for p in _as_list(raw, "certificates")]
