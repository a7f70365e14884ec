"""In-memory stand-in for the remote CertifyPro REST API.

Tests reach it through httpx.ASGITransport, so every portal call goes
through the real ApiClient: envelope, bearer token, status codes.

The fake follows the real backend's habits where they matter:
  - every response is {success, message, data}
  - a second approve/reject answers 400 "Request has already been ..."
    (no 409), revoking twice answers 409
  - private profiles are still returned by GET /users/{username};
    hiding them is the portal's job
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

BACKEND_URL = "http://backend/api"
PASSWORD = "password"


class _Fail(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _ok(data: Any = None, message: str = "OK") -> dict:
    return {"success": True, "message": message, "data": data}


@dataclass
class FakeState:
    users: dict[str, dict] = field(default_factory=dict)  # username -> user payload
    passwords: dict[str, str] = field(default_factory=dict)  # email -> password
    tokens: dict[str, str] = field(default_factory=dict)  # token -> username
    certificates: dict[str, dict] = field(default_factory=dict)
    requests: dict[str, dict] = field(default_factory=dict)
    outage: bool = False
    approve_returns_certificate: bool = False
    calls: list[tuple[str, str]] = field(default_factory=list)
    request_ids: list[str] = field(default_factory=list)
    uploads: list[tuple[str, str, int]] = field(default_factory=list)  # filename, type, size
    _seq: itertools.count = field(default_factory=lambda: itertools.count(1))

    def reset(self) -> None:
        self.users.clear()
        self.passwords.clear()
        self.tokens.clear()
        self.certificates.clear()
        self.requests.clear()
        self.outage = False
        self.approve_returns_certificate = False
        self.calls.clear()
        self.request_ids.clear()
        self.uploads.clear()
        self._seq = itertools.count(1)
        self.add_user("alice", "INDIVIDUAL", bio="Backend developer")
        self.add_user("ivy", "ISSUER", organization="Acme Academy")
        self.add_user("erin", "EMPLOYER", organization="Hire Co")
        self.add_user("adam", "ADMIN")

    def next_id(self) -> int:
        return next(self._seq)

    def add_user(self, username: str, role: str, **extra: Any) -> dict:
        user = {
            "id": str(len(self.users) + 1),
            "username": username,
            "email": f"{username}@example.com",
            "role": role,
            "skills": [],
            "profileVisibility": "PUBLIC",
            **extra,
        }
        self.users[username] = user
        self.passwords[user["email"]] = PASSWORD
        return user

    def mint_token(self, username: str) -> str:
        token = f"tok-{username}-{self.next_id()}"
        self.tokens[token] = username
        return token

    def user_by_email(self, email: str) -> dict | None:
        return next((u for u in self.users.values() if u["email"] == email), None)

    def add_certificate(
        self,
        *,
        holder: str = "alice",
        issuer: str = "ivy",
        name: str = "Python Fundamentals",
        status: str = "ACTIVE",
        issued_date: date = date(2024, 1, 15),
        expiry_date: date | None = None,
        skills: list[str] | None = None,
    ) -> dict:
        n = self.next_id()
        issuer_user = self.users[issuer]
        cert = {
            "id": f"cert-{n}",
            "verificationId": f"CERT-{n:06X}",
            "name": name,
            "description": "",
            "status": status,
            "issuedDate": issued_date.isoformat(),
            "expiryDate": expiry_date.isoformat() if expiry_date else None,
            "holderName": holder.title(),
            "holderUsername": holder,
            "issuerName": issuer_user["username"].title(),
            "issuerUsername": issuer,
            "issuerOrganization": issuer_user.get("organization"),
            "skills": list(skills or ["python"]),
            "blockchainHash": f"0x{n:064x}",
            "qrCode": f"data:image/png;base64,QR{n}",
            "views": 0,
        }
        self.certificates[cert["id"]] = cert
        return cert

    def add_request(
        self,
        *,
        requester: str = "alice",
        issuer: str = "ivy",
        skills: list[str] | None = None,
        message: str = "Please certify my course work",
    ) -> dict:
        n = self.next_id()
        req = {
            "id": f"req-{n}",
            "requesterUsername": requester,
            "requesterEmail": self.users[requester]["email"],
            "issuerUsername": issuer,
            "requestMessage": message,
            "skills": list(skills or ["python"]),
            "status": "PENDING",
            "rejectionReason": None,
            "requestedAt": datetime.now(UTC).isoformat(),
            "respondedAt": None,
            "paymentAmount": 10.0,
            "isPaid": False,
            "paymentTransactionId": None,
            "paidAt": None,
        }
        self.requests[req["id"]] = req
        return req


state = FakeState()
state.reset()

fake_app = FastAPI(title="fake-certifypro-backend")
router = APIRouter(prefix="/api")


@fake_app.exception_handler(_Fail)
async def _fail_handler(_request: Request, exc: _Fail) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "data": None},
    )


@fake_app.middleware("http")
async def _record_and_outage(request: Request, call_next):
    state.calls.append((request.method, request.url.path))
    if rid := request.headers.get("x-request-id"):
        state.request_ids.append(rid)
    if state.outage:
        return JSONResponse(status_code=503, content={"error": "Service Unavailable"})
    return await call_next(request)


def _caller(request: Request, *roles: str) -> dict:
    header = request.headers.get("authorization", "")
    token = header.removeprefix("Bearer ").strip()
    username = state.tokens.get(token)
    if not username:
        raise _Fail(401, "Invalid or expired token")
    user = state.users[username]
    if roles and user["role"] not in roles:
        raise _Fail(403, "Access denied")
    return user


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@router.post("/auth/login")
async def login(request: Request) -> dict:
    body = await request.json()
    email = body.get("email", "")
    user = state.user_by_email(email)
    if user is None or state.passwords.get(email) != body.get("password"):
        raise _Fail(401, "Invalid email or password")
    return _ok({"token": state.mint_token(user["username"]), "user": user}, "Login successful")


@router.post("/auth/register")
async def register(request: Request) -> dict:
    body = await request.json()
    if state.user_by_email(body["email"]) or body["username"] in state.users:
        raise _Fail(400, "Email or username is already registered")
    user = state.add_user(body["username"], body["role"], email=body["email"])
    state.passwords[user["email"]] = body["password"]
    return _ok({"token": state.mint_token(user["username"]), "user": user}, "Registered")


@router.get("/auth/verify")
async def verify_token(request: Request) -> dict:
    return _ok(_caller(request))


@router.post("/auth/logout")
async def logout(request: Request) -> dict:
    header = request.headers.get("authorization", "")
    state.tokens.pop(header.removeprefix("Bearer ").strip(), None)
    return _ok(None, "Logged out")


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


@router.get("/certificates/verify/{verification_id}")
async def verify_certificate(verification_id: str) -> dict:
    for cert in state.certificates.values():
        if cert["verificationId"] == verification_id:
            cert["views"] += 1
            return _ok(cert)
    raise _Fail(404, "Certificate not found")


@router.get("/certificates/my-certificates")
async def my_certificates(request: Request) -> dict:
    user = _caller(request)
    return _ok(
        [c for c in state.certificates.values() if c["holderUsername"] == user["username"]]
    )


@router.get("/certificates/issued")
async def issued_certificates(request: Request) -> dict:
    user = _caller(request, "ISSUER")
    return _ok(
        [
            c
            for c in state.certificates.values()
            if c["issuerUsername"] == user["username"]
        ]
    )


@router.post("/certificates/issue")
async def issue_certificate(request: Request) -> dict:
    issuer = _caller(request, "ISSUER")
    body = await request.json()
    holder = state.user_by_email(body.get("recipientEmail", ""))
    if holder is None:
        raise _Fail(404, "Recipient not found")
    if not body.get("skills"):
        raise _Fail(400, "Skills must not be empty")
    cert = state.add_certificate(
        holder=holder["username"],
        issuer=issuer["username"],
        name=body["name"],
        issued_date=date.fromisoformat(body["issuedDate"]),
        expiry_date=(
            date.fromisoformat(body["expiryDate"]) if body.get("expiryDate") else None
        ),
        skills=body["skills"],
    )
    cert["description"] = body.get("description", "")
    return _ok(cert, "Certificate issued")


@router.get("/certificates/{certificate_id}")
async def get_certificate(certificate_id: str, request: Request) -> dict:
    _caller(request)
    cert = state.certificates.get(certificate_id)
    if cert is None:
        raise _Fail(404, "Certificate not found")
    return _ok(cert)


@router.delete("/certificates/{certificate_id}/revoke")
async def revoke_certificate(certificate_id: str, request: Request) -> dict:
    issuer = _caller(request, "ISSUER")
    cert = state.certificates.get(certificate_id)
    if cert is None:
        raise _Fail(404, "Certificate not found")
    if cert["issuerUsername"] != issuer["username"]:
        raise _Fail(403, "Only the issuing organization can revoke")
    if cert["status"] == "REVOKED":
        raise _Fail(409, "Certificate is already revoked")
    cert["status"] = "REVOKED"
    return _ok(None, "Certificate revoked")


# ---------------------------------------------------------------------------
# Certificate requests
# ---------------------------------------------------------------------------


@router.post("/certificate-requests")
async def create_request(request: Request) -> dict:
    requester = _caller(request, "INDIVIDUAL")
    body = await request.json()
    issuer = state.users.get(body.get("issuerUsername", ""))
    if issuer is None or issuer["role"] != "ISSUER":
        raise _Fail(404, "Issuer not found")
    req = state.add_request(
        requester=requester["username"],
        issuer=issuer["username"],
        skills=body.get("skills"),
        message=body.get("requestMessage", ""),
    )
    return _ok(req, "Request submitted")


@router.get("/certificate-requests/my-requests")
async def my_requests(request: Request) -> dict:
    user = _caller(request)
    return _ok(
        [r for r in state.requests.values() if r["requesterUsername"] == user["username"]]
    )


@router.get("/certificate-requests/pending")
async def pending_requests(request: Request) -> dict:
    user = _caller(request, "ISSUER")
    return _ok(
        [
            r
            for r in state.requests.values()
            if r["issuerUsername"] == user["username"] and r["status"] == "PENDING"
        ]
    )


@router.get("/certificate-requests/all")
async def all_requests(request: Request) -> dict:
    user = _caller(request, "ISSUER")
    return _ok(
        [r for r in state.requests.values() if r["issuerUsername"] == user["username"]]
    )


def _open_request(request_id: str, issuer: dict) -> dict:
    req = state.requests.get(request_id)
    if req is None:
        raise _Fail(404, "Request not found")
    if req["issuerUsername"] != issuer["username"]:
        raise _Fail(403, "Not your request")
    if req["status"] != "PENDING":
        raise _Fail(400, f"Request has already been {req['status'].lower()}")
    return req


@router.post("/certificate-requests/{request_id}/approve")
async def approve_request(request_id: str, request: Request) -> dict:
    issuer = _caller(request, "ISSUER")
    req = _open_request(request_id, issuer)
    body = await request.json()
    cert = state.add_certificate(
        holder=req["requesterUsername"],
        issuer=issuer["username"],
        name=body["certificateName"],
        issued_date=date.fromisoformat(body["issuedDate"]),
        expiry_date=(
            date.fromisoformat(body["expiryDate"]) if body.get("expiryDate") else None
        ),
        skills=req["skills"],
    )
    req["status"] = "APPROVED"
    req["respondedAt"] = datetime.now(UTC).isoformat()
    if state.approve_returns_certificate:
        return _ok(cert, "Request approved")
    return _ok(req, "Request approved")


@router.post("/certificate-requests/{request_id}/reject")
async def reject_request(request_id: str, request: Request) -> dict:
    issuer = _caller(request, "ISSUER")
    req = _open_request(request_id, issuer)
    body = await request.json()
    req["status"] = "REJECTED"
    req["rejectionReason"] = body.get("rejectionReason")
    req["respondedAt"] = datetime.now(UTC).isoformat()
    return _ok(req, "Request rejected")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users/admin/stats")
async def admin_stats(request: Request) -> dict:
    _caller(request, "ADMIN")
    total = len(state.users)
    roles = sorted({u["role"] for u in state.users.values()})
    breakdown = [
        {
            "role": role,
            "count": sum(1 for u in state.users.values() if u["role"] == role),
            "percentage": round(
                100 * sum(1 for u in state.users.values() if u["role"] == role) / total, 1
            ),
        }
        for role in roles
    ]
    return _ok(
        {
            "totalUsers": total,
            "totalCertificates": len(state.certificates),
            "activeIssuers": sum(1 for u in state.users.values() if u["role"] == "ISSUER"),
            "monthlyGrowth": 12.5,
            "userBreakdown": breakdown,
        }
    )


@router.put("/users/profile")
async def update_profile(request: Request) -> dict:
    user = _caller(request)
    body = await request.json()
    user.update(body)
    return _ok(user, "Profile updated")


@router.post("/users/profile/picture")
async def upload_profile_picture(request: Request) -> dict:
    user = _caller(request)
    form = await request.form()
    upload = form.get("file")
    if upload is None or isinstance(upload, str):
        raise _Fail(400, "File is empty")
    content = await upload.read()
    state.uploads.append((upload.filename, upload.content_type, len(content)))
    url = f"https://avatars.example/{user['username']}/{upload.filename}"
    user["avatar"] = url
    return _ok({"avatarUrl": url, "message": "Profile picture uploaded successfully"})


@router.delete("/users/profile/picture")
async def delete_profile_picture(request: Request) -> dict:
    user = _caller(request)
    user["avatar"] = None
    return _ok(None, "Profile picture deleted successfully")


@router.get("/users/{username}")
async def get_user(username: str) -> dict:
    user = state.users.get(username)
    if user is None:
        raise _Fail(404, "User not found")
    return _ok(user)


@router.get("/users/{username}/issuer-stats")
async def issuer_stats(username: str) -> dict:
    issuer = state.users.get(username)
    if issuer is None or issuer["role"] != "ISSUER":
        raise _Fail(404, "Issuer not found")
    issued = [
        c for c in state.certificates.values() if c["issuerUsername"] == username
    ]
    return _ok(
        {
            "totalIssued": len(issued),
            "activeTemplates": 3,
            "monthlyIssue": len(issued),
            "verificationRate": 98.5,
        }
    )


@router.get("/users/{username}/employer-stats")
async def employer_stats(username: str) -> dict:
    employer = state.users.get(username)
    if employer is None or employer["role"] != "EMPLOYER":
        raise _Fail(404, "Employer not found")
    return _ok(
        {
            "employeesVerified": 42,
            "activeJobs": 5,
            "candidatesReviewed": 120,
            "hiringRate": 35.0,
        }
    )


fake_app.include_router(router)
