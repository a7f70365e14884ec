from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from portal.services.api_client import ApiClient, build_api_client

logger = logging.getLogger(__name__)

# The portal does not issue tokens; it relays the backend's bearer token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/session/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/session/token", auto_error=False)


def get_api_client() -> ApiClient:
    """Anonymous backend client.  Tests override this to inject a transport."""
    return build_api_client()


def require_backend_client(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
    client: Annotated[ApiClient, Depends(get_api_client)],
) -> ApiClient:
    """Backend client carrying the caller's bearer token.

    The token is not inspected here; the backend is the only judge of
    whether it is valid and rejects it with 401 (UnauthorizedError).
    """
    return client.with_token(raw_token)


def optional_backend_client(
    raw_token: Annotated[str | None, Depends(optional_oauth2_scheme)],
    client: Annotated[ApiClient, Depends(get_api_client)],
) -> ApiClient:
    return client.with_token(raw_token) if raw_token else client
