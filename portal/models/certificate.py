from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from portal.services.errors import ResponseFormatError


class CertificateStatus(str, Enum):
    """Lifecycle status, owned by the backend."""

    ACTIVE = "ACTIVE"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
    PENDING = "PENDING"


# ---------------------------------------------------------------------------
# Payload helpers (shared with certificate_request / user)
# ---------------------------------------------------------------------------


def ordered_skills(raw: Iterable[str] | None) -> tuple[str, ...]:
    """Strip, drop blanks and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for s in raw or ():
        s = str(s).strip()
        if s:
            seen.setdefault(s, None)
    return tuple(seen)


def require(payload: Mapping[str, Any], key: str) -> Any:
    value = payload.get(key)
    if value is None or value == "":
        raise ResponseFormatError(f"Backend payload is missing {key!r}")
    return value


def parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        # Backends sometimes send full timestamps for date fields
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ResponseFormatError(f"Invalid date in {field!r}: {value!r}") from None


def parse_datetime(value: Any, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ResponseFormatError(f"Invalid timestamp in {field!r}: {value!r}") from None


# ---------------------------------------------------------------------------
# Certificate record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Holder:
    name: str
    username: str


@dataclass(frozen=True, slots=True)
class Issuer:
    name: str
    organization: str | None = None


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """A certificate as the backend returns it.

    Read-only on the client: it is fetched, displayed and possibly
    revoked through the backend, never edited in place.  ``status`` is
    authoritative; anything derived from the dates is a display hint
    (see portal.services.lifecycle).
    """

    id: str
    name: str
    status: CertificateStatus
    issued_date: date
    holder: Holder
    issuer: Issuer
    description: str = ""
    expiry_date: date | None = None
    verification_id: str | None = None
    skills: tuple[str, ...] = ()
    blockchain_hash: str | None = None
    qr_code: str | None = None
    views: int = 0

    @property
    def is_active(self) -> bool:
        return self.status is CertificateStatus.ACTIVE

    @property
    def is_issued(self) -> bool:
        """True once the verification artifacts have been attached."""
        return bool(self.blockchain_hash and self.qr_code)

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> CertificateRecord:
        if not isinstance(payload, Mapping):
            raise ResponseFormatError("Certificate payload must be an object")

        raw_status = str(require(payload, "status")).upper()
        try:
            status = CertificateStatus(raw_status)
        except ValueError:
            raise ResponseFormatError(
                f"Unknown certificate status {raw_status!r}"
            ) from None

        issued = parse_date(require(payload, "issuedDate"), "issuedDate")
        expiry = parse_date(payload.get("expiryDate"), "expiryDate")
        if expiry is not None and expiry < issued:
            raise ResponseFormatError(
                f"expiryDate {expiry} precedes issuedDate {issued}"
            )

        try:
            views = int(payload.get("views") or 0)
        except (TypeError, ValueError):
            raise ResponseFormatError(
                f"views must be a number, got {payload.get('views')!r}"
            ) from None

        return CertificateRecord(
            id=str(require(payload, "id")),
            name=str(require(payload, "name")),
            status=status,
            issued_date=issued,
            expiry_date=expiry,
            description=payload.get("description") or "",
            verification_id=payload.get("verificationId") or None,
            holder=Holder(
                name=payload.get("holderName") or "",
                username=payload.get("holderUsername") or "",
            ),
            issuer=Issuer(
                name=payload.get("issuerName") or "",
                organization=payload.get("issuerOrganization") or None,
            ),
            skills=ordered_skills(payload.get("skills")),
            blockchain_hash=payload.get("blockchainHash") or None,
            qr_code=payload.get("qrCode") or None,
            views=views,
        )

    def to_payload(self) -> dict[str, Any]:
        """Render back to the backend's camelCase shape."""
        return {
            "id": self.id,
            "verificationId": self.verification_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "issuedDate": self.issued_date.isoformat(),
            "expiryDate": self.expiry_date.isoformat() if self.expiry_date else None,
            "holderName": self.holder.name,
            "holderUsername": self.holder.username,
            "issuerName": self.issuer.name,
            "issuerOrganization": self.issuer.organization,
            "skills": list(self.skills),
            "blockchainHash": self.blockchain_hash,
            "qrCode": self.qr_code,
            "views": self.views,
        }
