from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth
from tests.fake_backend import state

ISSUE_BODY = {
    "name": "Cloud Foundations",
    "recipientEmail": "alice@example.com",
    "issuedDate": "2025-04-01",
    "expiryDate": "2027-04-01",
    "skills": ["aws", "terraform"],
    "description": "Twelve week track",
}


# ---- 401: missing or rejected token ----


def test_my_certificates_rejects_missing_token(client: TestClient) -> None:
    resp = client.get("/certificates/mine")

    assert resp.status_code == 401


def test_my_certificates_rejects_unknown_token(client: TestClient) -> None:
    resp = client.get("/certificates/mine", headers={"Authorization": "Bearer tok-bogus"})

    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthorized"
    assert resp.headers["WWW-Authenticate"] == "Bearer"


# ---- issue ----


def test_issue_then_fetch(client: TestClient) -> None:
    created = client.post("/certificates/issue", json=ISSUE_BODY, headers=auth("ivy"))

    assert created.status_code == 201
    cert = created.json()
    assert cert["status"] == "ACTIVE"
    assert cert["displayStatus"] == "ACTIVE"
    assert cert["holderUsername"] == "alice"

    fetched = client.get(f"/certificates/{cert['id']}", headers=auth("alice"))

    assert fetched.status_code == 200
    body = fetched.json()
    assert body["name"] == "Cloud Foundations"
    assert set(body["skills"]) == {"aws", "terraform"}
    assert body["issuedDate"] == "2025-04-01"


def test_issue_with_empty_skills_is_precondition_400(client: TestClient) -> None:
    resp = client.post(
        "/certificates/issue", json={**ISSUE_BODY, "skills": []}, headers=auth("ivy")
    )

    assert resp.status_code == 400
    assert resp.json() == {"detail": "At least one skill is required", "code": "precondition"}
    assert state.certificates == {}


def test_issue_with_bad_date_is_precondition_400(client: TestClient) -> None:
    resp = client.post(
        "/certificates/issue",
        json={**ISSUE_BODY, "issuedDate": "April 1st"},
        headers=auth("ivy"),
    )

    assert resp.status_code == 400
    assert "YYYY-MM-DD" in resp.json()["detail"]


def test_issue_as_individual_is_401(client: TestClient) -> None:
    resp = client.post("/certificates/issue", json=ISSUE_BODY, headers=auth("alice"))

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Access denied"


def test_issue_during_outage_is_502(client: TestClient) -> None:
    state.outage = True

    resp = client.post("/certificates/issue", json=ISSUE_BODY, headers=auth("ivy"))

    assert resp.status_code == 502
    assert resp.json()["code"] == "network"


# ---- fetch / list ----


def test_get_unknown_certificate_is_404(client: TestClient) -> None:
    resp = client.get("/certificates/cert-999", headers=auth("alice"))

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Certificate not found", "code": "not_found"}


def test_list_mine_and_issued(client: TestClient) -> None:
    cert = state.add_certificate()

    mine = client.get("/certificates/mine", headers=auth("alice"))
    issued = client.get("/certificates/issued", headers=auth("ivy"))

    assert [c["id"] for c in mine.json()] == [cert["id"]]
    assert [c["id"] for c in issued.json()] == [cert["id"]]


def test_list_shows_display_status(client: TestClient) -> None:
    state.add_certificate(status="EXPIRED")

    body = client.get("/certificates/mine", headers=auth("alice")).json()

    assert body[0]["status"] == "EXPIRED"
    assert body[0]["displayStatus"] == "EXPIRED"


# ---- revoke ----


def test_revoke_then_verify_is_invalid(client: TestClient) -> None:
    cert = state.add_certificate()

    resp = client.delete(f"/certificates/{cert['id']}/revoke", headers=auth("ivy"))

    assert resp.status_code == 204
    verdict = client.get(f"/verify/{cert['verificationId']}").json()
    assert verdict["valid"] is False
    assert verdict["reason"] == "Certificate is REVOKED"


def test_revoke_twice_is_409(client: TestClient) -> None:
    cert = state.add_certificate()
    client.delete(f"/certificates/{cert['id']}/revoke", headers=auth("ivy"))

    resp = client.delete(f"/certificates/{cert['id']}/revoke", headers=auth("ivy"))

    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"
