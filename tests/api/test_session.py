from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.conftest import auth
from tests.fake_backend import PASSWORD, state


def test_login_returns_backend_token(client: TestClient) -> None:
    resp = client.post(
        "/session/login", json={"email": "alice@example.com", "password": PASSWORD}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["tokenType"] == "bearer"
    assert body["accessToken"] in state.tokens
    assert body["user"]["username"] == "alice"
    assert body["user"]["role"] == "INDIVIDUAL"


def test_token_accepts_oauth2_form(client: TestClient) -> None:
    resp = client.post(
        "/session/token",
        data={"username": "ivy@example.com", "password": PASSWORD},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert state.tokens[body["access_token"]] == "ivy"


def test_token_bad_password_is_401(client: TestClient) -> None:
    resp = client.post(
        "/session/token", data={"username": "ivy@example.com", "password": "nope"}
    )

    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_token_without_form_is_422(client: TestClient) -> None:
    resp = client.post("/session/token", json={"username": "ivy@example.com"})

    assert resp.status_code == 422
    assert state.calls == []


def test_login_bad_password_is_401(client: TestClient) -> None:
    resp = client.post(
        "/session/login", json={"email": "alice@example.com", "password": "nope"}
    )

    assert resp.status_code == 401
    assert resp.json() == {"detail": "Invalid email or password", "code": "unauthorized"}


def test_login_missing_field_is_422(client: TestClient) -> None:
    resp = client.post("/session/login", json={"email": "alice@example.com"})

    assert resp.status_code == 422
    assert state.calls == []


@pytest.mark.parametrize(
    "body",
    [
        {"email": 5, "password": PASSWORD},
        {"email": "alice@example.com", "password": ["x"]},
        ["alice@example.com", PASSWORD],
    ],
)
def test_login_rejects_mistyped_body(client: TestClient, body: object) -> None:
    resp = client.post("/session/login", json=body)

    assert resp.status_code == 422
    assert state.calls == []


def test_login_blank_fields_is_400(client: TestClient) -> None:
    resp = client.post("/session/login", json={"email": "  ", "password": PASSWORD})

    assert resp.status_code == 400
    assert resp.json()["code"] == "precondition"
    assert state.calls == []


def test_me_returns_token_owner(client: TestClient) -> None:
    resp = client.get("/session/me", headers=auth("erin"))

    assert resp.status_code == 200
    assert resp.json()["username"] == "erin"
    assert resp.json()["organization"] == "Hire Co"


def test_me_without_token_is_401(client: TestClient) -> None:
    assert client.get("/session/me").status_code == 401


def test_logout_revokes_backend_token(client: TestClient) -> None:
    headers = auth("alice")

    resp = client.post("/session/logout", headers=headers)

    assert resp.status_code == 204
    assert client.get("/session/me", headers=headers).status_code == 401


def test_logout_is_204_even_when_backend_is_down(client: TestClient) -> None:
    headers = auth("alice")
    state.outage = True

    resp = client.post("/session/logout", headers=headers)

    assert resp.status_code == 204


def test_register(client: TestClient) -> None:
    resp = client.post(
        "/session/register",
        json={
            "username": "nina",
            "email": "nina@example.com",
            "password": "s3cret",
            "role": "ISSUER",
        },
    )

    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "ISSUER"
    assert "nina" in state.users


def test_register_as_admin_is_400(client: TestClient) -> None:
    resp = client.post(
        "/session/register",
        json={
            "username": "eve",
            "email": "eve@example.com",
            "password": "x",
            "role": "ADMIN",
        },
    )

    assert resp.status_code == 400
    assert "eve" not in state.users
