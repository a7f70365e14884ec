from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from portal.models.certificate import ordered_skills, parse_datetime, require
from portal.services.errors import ResponseFormatError


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


TERMINAL_STATUSES = frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED})


def _amount(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ResponseFormatError(f"paymentAmount must be a number, got {value!r}")
    return float(value)


@dataclass(frozen=True, slots=True)
class CertificateRequest:
    """An individual's ask for an issuer to mint a certificate.

    Moves PENDING -> APPROVED or PENDING -> REJECTED exactly once.  A
    rejected request is final; there is no resubmission.
    """

    id: str
    requester_username: str
    issuer_username: str
    status: RequestStatus
    requester_email: str = ""
    request_message: str = ""
    skills: tuple[str, ...] = ()
    rejection_reason: str | None = None
    requested_at: datetime | None = None
    responded_at: datetime | None = None
    # Request fee bookkeeping, reported by the backend but never settled here
    payment_amount: float | None = None
    is_paid: bool = False
    payment_transaction_id: str | None = None
    paid_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> CertificateRequest:
        if not isinstance(payload, Mapping):
            raise ResponseFormatError("Certificate request payload must be an object")

        raw_status = str(require(payload, "status")).upper()
        try:
            status = RequestStatus(raw_status)
        except ValueError:
            raise ResponseFormatError(
                f"Unknown request status {raw_status!r}"
            ) from None

        return CertificateRequest(
            id=str(require(payload, "id")),
            requester_username=payload.get("requesterUsername") or "",
            requester_email=payload.get("requesterEmail") or "",
            issuer_username=payload.get("issuerUsername") or "",
            request_message=payload.get("requestMessage") or "",
            skills=ordered_skills(payload.get("skills")),
            status=status,
            # Only meaningful once rejected; ignore stray values otherwise
            rejection_reason=(
                payload.get("rejectionReason") or None
                if status is RequestStatus.REJECTED
                else None
            ),
            requested_at=parse_datetime(payload.get("requestedAt"), "requestedAt"),
            responded_at=parse_datetime(payload.get("respondedAt"), "respondedAt"),
            payment_amount=_amount(payload.get("paymentAmount")),
            is_paid=bool(payload.get("isPaid")),
            payment_transaction_id=payload.get("paymentTransactionId") or None,
            paid_at=parse_datetime(payload.get("paidAt"), "paidAt"),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "requesterUsername": self.requester_username,
            "requesterEmail": self.requester_email,
            "issuerUsername": self.issuer_username,
            "requestMessage": self.request_message,
            "skills": list(self.skills),
            "status": self.status.value,
            "rejectionReason": self.rejection_reason,
            "requestedAt": self.requested_at.isoformat() if self.requested_at else None,
            "respondedAt": self.responded_at.isoformat() if self.responded_at else None,
            "paymentAmount": self.payment_amount,
            "isPaid": self.is_paid,
            "paymentTransactionId": self.payment_transaction_id,
            "paidAt": self.paid_at.isoformat() if self.paid_at else None,
        }
