"""Role-specific profile views.

One dataclass per role, each tagged with a ``kind`` literal, joined in
the ``Profile`` union.  portal.services.profiles builds them; the API
layer renders whichever variant it gets.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from portal.models.certificate import CertificateRecord
from portal.models.certificate_request import CertificateRequest
from portal.models.user import User
from portal.services.errors import ResponseFormatError


def _num(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if value is None:
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ResponseFormatError(f"Expected a number in {key!r}, got {value!r}") from None


def _stats_payload(payload: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ResponseFormatError(f"{name} payload must be an object")
    return payload


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IssuerStats:
    total_issued: int = 0
    active_templates: int = 0
    monthly_issue: int = 0
    verification_rate: float = 0.0

    @staticmethod
    def from_payload(payload: Any) -> IssuerStats:
        p = _stats_payload(payload, "Issuer stats")
        return IssuerStats(
            total_issued=int(_num(p, "totalIssued")),
            active_templates=int(_num(p, "activeTemplates")),
            monthly_issue=int(_num(p, "monthlyIssue")),
            verification_rate=_num(p, "verificationRate"),
        )


@dataclass(frozen=True, slots=True)
class EmployerStats:
    employees_verified: int = 0
    active_jobs: int = 0
    candidates_reviewed: int = 0
    hiring_rate: float = 0.0

    @staticmethod
    def from_payload(payload: Any) -> EmployerStats:
        p = _stats_payload(payload, "Employer stats")
        return EmployerStats(
            employees_verified=int(_num(p, "employeesVerified")),
            active_jobs=int(_num(p, "activeJobs")),
            candidates_reviewed=int(_num(p, "candidatesReviewed")),
            hiring_rate=_num(p, "hiringRate"),
        )


@dataclass(frozen=True, slots=True)
class RoleBreakdown:
    role: str
    count: int
    percentage: float


@dataclass(frozen=True, slots=True)
class AdminStats:
    total_users: int = 0
    total_certificates: int = 0
    active_issuers: int = 0
    monthly_growth: float = 0.0
    user_breakdown: tuple[RoleBreakdown, ...] = ()

    @staticmethod
    def from_payload(payload: Any) -> AdminStats:
        p = _stats_payload(payload, "Admin stats")
        breakdown = tuple(
            RoleBreakdown(
                role=str(row.get("role", "")),
                count=int(_num(row, "count")),
                percentage=_num(row, "percentage"),
            )
            for row in p.get("userBreakdown") or ()
            if isinstance(row, Mapping)
        )
        return AdminStats(
            total_users=int(_num(p, "totalUsers")),
            total_certificates=int(_num(p, "totalCertificates")),
            active_issuers=int(_num(p, "activeIssuers")),
            monthly_growth=_num(p, "monthlyGrowth"),
            user_breakdown=breakdown,
        )


# ---------------------------------------------------------------------------
# Profile variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IndividualProfile:
    user: User
    certificates: tuple[CertificateRecord, ...] = ()
    requests: tuple[CertificateRequest, ...] = ()
    kind: Literal["individual"] = field(default="individual", init=False)


@dataclass(frozen=True, slots=True)
class IssuerProfile:
    user: User
    stats: IssuerStats
    issued: tuple[CertificateRecord, ...] = ()
    pending_requests: tuple[CertificateRequest, ...] = ()
    kind: Literal["issuer"] = field(default="issuer", init=False)


@dataclass(frozen=True, slots=True)
class EmployerProfile:
    user: User
    stats: EmployerStats
    kind: Literal["employer"] = field(default="employer", init=False)


@dataclass(frozen=True, slots=True)
class AdminProfile:
    user: User
    stats: AdminStats
    kind: Literal["admin"] = field(default="admin", init=False)


Profile = IndividualProfile | IssuerProfile | EmployerProfile | AdminProfile
