"""Session endpoints, relayed to the backend's /auth API.

The portal keeps no server-side session: login hands the backend token
to the caller, who sends it back as ``Authorization: Bearer``.

- POST /session/login      email + password -> {accessToken, tokenType, user}
- POST /session/token      OAuth2 password form -> {access_token, token_type}
- POST /session/register   self-registration (INDIVIDUAL, ISSUER, EMPLOYER)
- POST /session/logout     best-effort backend logout; always 204
- GET  /session/me         the user the bearer token belongs to

POST /session/token takes the OAuth2 password form instead so the OpenAPI
"Authorize" button works; ``username`` carries the email there.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from portal.api.dependencies import get_api_client, require_backend_client
from portal.models.user import User
from portal.services import session as session_service
from portal.services.api_client import ApiClient
from portal.services.errors import PortalError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["session"])


class UserOut(BaseModel):
    id: str
    email: str
    username: str
    role: str
    avatar: str | None = None
    bio: str | None = None
    skills: list[str] = []
    organization: str | None = None
    location: str | None = None
    experience: str | None = None
    profileVisibility: str = "public"

    @staticmethod
    def from_user(user: User) -> UserOut:
        return UserOut(**user.to_payload())


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    username: str
    email: str
    password: str
    role: str


class TokenOut(BaseModel):
    accessToken: str
    tokenType: str = "bearer"
    user: UserOut


class OAuthTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=TokenOut)
async def login(
    body: LoginIn,
    client: Annotated[ApiClient, Depends(get_api_client)],
) -> TokenOut:
    token, user = await session_service.authenticate(client, body.email, body.password)
    logger.info("Login relayed  user=%s role=%s", user.username, user.role.value)
    return TokenOut(accessToken=token, user=UserOut.from_user(user))


@router.post("/token", response_model=OAuthTokenOut)
async def oauth_token(
    form: Annotated[OAuth2PasswordRequestForm, Depends()],
    client: Annotated[ApiClient, Depends(get_api_client)],
) -> OAuthTokenOut:
    access_token, user = await session_service.authenticate(
        client, form.username, form.password
    )
    logger.info("Token relayed  user=%s role=%s", user.username, user.role.value)
    return OAuthTokenOut(access_token=access_token)


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterIn,
    client: Annotated[ApiClient, Depends(get_api_client)],
) -> TokenOut:
    token, user = await session_service.register_account(
        client,
        username=body.username,
        email=body.email,
        password=body.password,
        role=body.role,
    )
    logger.info("Registration relayed  user=%s role=%s", user.username, user.role.value)
    return TokenOut(accessToken=token, user=UserOut.from_user(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> Response:
    try:
        await client.post("/auth/logout", operation="logout", fallback="Logout failed")
    except PortalError as e:
        # The caller drops its token regardless; the backend call is a courtesy
        logger.debug("Backend logout failed  code=%s", e.code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserOut)
async def me(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> UserOut:
    user = await session_service.fetch_current_user(client)
    return UserOut.from_user(user)
