from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from tests.conftest import auth
from tests.fake_backend import state


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")

    req_id = resp.headers.get("x-request-id")
    assert req_id is not None
    uuid.UUID(req_id)  # raises ValueError if invalid


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "trace-123"})

    assert resp.headers.get("x-request-id") == "trace-123"


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/certificates/mine")  # no token -> 401

    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_request_id_forwarded_to_backend(client: TestClient) -> None:
    headers = {**auth("ivy"), "X-Request-ID": "trace-456"}

    client.get("/profiles/me", headers=headers)

    # /auth/verify, then stats, issued and pending
    assert state.request_ids == ["trace-456"] * 4


def test_each_request_gets_its_own_id(client: TestClient) -> None:
    client.get("/session/me", headers=auth("alice"))
    client.get("/session/me", headers=auth("alice"))

    assert len(state.request_ids) == 2
    assert state.request_ids[0] != state.request_ids[1]
