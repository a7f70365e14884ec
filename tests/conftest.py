from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import portal` and `import tests.*` work.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portal.api.dependencies import get_api_client  # noqa: E402
from portal.main import app  # noqa: E402
from portal.services.api_client import ApiClient  # noqa: E402
from portal.services.token_store import token_store  # noqa: E402
from tests.fake_backend import BACKEND_URL, fake_app, state  # noqa: E402


@pytest.fixture(autouse=True)
def reset_fake_backend() -> None:
    """Fresh seeded backend for every test: alice, ivy, erin, adam."""
    state.reset()


@pytest.fixture(autouse=True)
def reset_token_store() -> None:
    if hasattr(token_store, "_store"):
        token_store._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def backend() -> ApiClient:
    """Anonymous ApiClient wired to the in-memory fake backend."""
    return ApiClient(
        base_url=BACKEND_URL,
        timeout=5.0,
        transport=httpx.ASGITransport(app=fake_app),
    )


@pytest.fixture
def client(backend: ApiClient):
    app.dependency_overrides[get_api_client] = lambda: backend
    yield TestClient(app)
    app.dependency_overrides.pop(get_api_client, None)


def mint_token(username: str = "alice") -> str:
    """Bearer token the fake backend accepts for ``username``."""
    return state.mint_token(username)


def auth(username: str = "alice") -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(username)}"}


@pytest.fixture
def alice(backend: ApiClient) -> ApiClient:
    return backend.with_token(mint_token("alice"))


@pytest.fixture
def ivy(backend: ApiClient) -> ApiClient:
    return backend.with_token(mint_token("ivy"))
