"""Session state: the bearer token and the logged-in user.

A Session is an immutable snapshot.  SessionContext holds exactly one
and swaps it wholesale on login / logout / refresh, so a reader always
sees a token and user that belong together.  Nothing ever mutates a
field of the current snapshot.

Lifecycle:

  start()    read the persisted token; if present, validate it once via
             GET /auth/verify.  A token that fails validation is removed
             and the session stays anonymous.
  login()    POST /auth/login, persist the token, swap in the new session.
  register() POST /auth/register, same as login afterwards.
  refresh()  re-validate the token and swap in the fresh user profile;
             if the backend no longer accepts it, log out.
  logout()   forget the token locally; tell the backend best-effort.

start() and refresh() await the backend before swapping.  If another swap
landed meanwhile (a logout, say), theirs is discarded and the newer
snapshot stands.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from portal.models.user import SELF_REGISTER_ROLES, User, UserRole
from portal.services.api_client import ApiClient
from portal.services.errors import (
    PortalError,
    PreconditionError,
    ResponseFormatError,
    UnauthorizedError,
)
from portal.services.token_store import TokenStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Session:
    token: str | None = None
    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None


ANONYMOUS = Session()


# ---------------------------------------------------------------------------
# Backend auth calls (also used directly by the portal's /session routes)
# ---------------------------------------------------------------------------


def _parse_auth(raw: Any) -> tuple[str, User]:
    if not isinstance(raw, Mapping):
        raise ResponseFormatError("Auth response must be an object")
    token = raw.get("token")
    if not isinstance(token, str) or not token:
        raise ResponseFormatError("Auth response carries no token")
    return token, User.from_payload(raw.get("user") or {})


async def authenticate(client: ApiClient, email: str, password: str) -> tuple[str, User]:
    email = (email or "").strip()
    if not email or not password:
        raise PreconditionError("Email and password are required")
    raw = await client.post(
        "/auth/login",
        json={"email": email, "password": password},
        operation="login",
        fallback="Login failed",
    )
    return _parse_auth(raw)


async def register_account(
    client: ApiClient,
    *,
    username: str,
    email: str,
    password: str,
    role: UserRole | str,
) -> tuple[str, User]:
    try:
        role = UserRole(str(getattr(role, "value", role)).upper())
    except ValueError:
        raise PreconditionError(f"Unknown role {role!r}") from None
    if role not in SELF_REGISTER_ROLES:
        raise PreconditionError("Role must be INDIVIDUAL, ISSUER or EMPLOYER")
    username = (username or "").strip()
    email = (email or "").strip()
    if not username or not email or not password:
        raise PreconditionError("Username, email and password are required")

    raw = await client.post(
        "/auth/register",
        json={
            "username": username,
            "email": email,
            "password": password,
            "role": role.value,
        },
        operation="register",
        fallback="Registration failed",
    )
    return _parse_auth(raw)


async def fetch_current_user(client: ApiClient) -> User:
    """Validate the client's token; returns the user it belongs to."""
    if not client.token:
        raise UnauthorizedError("Not logged in")
    raw = await client.get("/auth/verify", operation="verify_token", fallback="Invalid token")
    return User.from_payload(raw or {})


# ---------------------------------------------------------------------------
# Session holder
# ---------------------------------------------------------------------------


class SessionContext:
    def __init__(self, client: ApiClient, store: TokenStore) -> None:
        self._base_client = client.with_token(None)
        self._store = store
        self._session: Session = ANONYMOUS
        self._generation = 0

    @property
    def current(self) -> Session:
        return self._session

    def client(self) -> ApiClient:
        """A backend client carrying the current session's token."""
        return self._base_client.with_token(self._session.token)

    def _swap(self, session: Session) -> Session:
        self._session = session
        self._generation += 1
        return session

    def _superseded(self, generation: int) -> bool:
        """True if another swap landed while this call was awaiting."""
        return self._generation != generation

    async def start(self) -> Session:
        generation = self._generation
        token = await self._store.load()
        if self._superseded(generation):
            return self._session
        if not token:
            return self._swap(ANONYMOUS)
        try:
            user = await fetch_current_user(self._base_client.with_token(token))
        except PortalError as e:
            logger.warning("Stored token rejected  code=%s", e.code)
            if self._superseded(generation):
                return self._session
            await self._store.clear()
            return self._swap(ANONYMOUS)
        if self._superseded(generation):
            # login or logout finished while the token was being checked
            return self._session
        logger.info("Session restored  user=%s role=%s", user.username, user.role.value)
        return self._swap(Session(token=token, user=user))

    async def login(self, email: str, password: str) -> Session:
        token, user = await authenticate(self._base_client, email, password)
        await self._store.save(token)
        logger.info("Logged in  user=%s role=%s", user.username, user.role.value)
        return self._swap(Session(token=token, user=user))

    async def register(
        self, *, username: str, email: str, password: str, role: UserRole | str
    ) -> Session:
        token, user = await register_account(
            self._base_client,
            username=username,
            email=email,
            password=password,
            role=role,
        )
        await self._store.save(token)
        logger.info("Registered  user=%s role=%s", user.username, user.role.value)
        return self._swap(Session(token=token, user=user))

    async def refresh(self) -> Session:
        current = self._session
        generation = self._generation
        if current.token is None:
            return current
        try:
            user = await fetch_current_user(self.client())
        except UnauthorizedError:
            logger.info("Session expired on refresh")
            if self._superseded(generation):
                return self._session
            return await self.logout()
        if self._superseded(generation):
            # a concurrent login or logout already replaced the snapshot
            return self._session
        return self._swap(Session(token=current.token, user=user))

    async def logout(self) -> Session:
        current = self._session
        self._swap(ANONYMOUS)
        await self._store.clear()
        if current.token is not None:
            try:
                await self._base_client.with_token(current.token).post(
                    "/auth/logout", operation="logout", fallback="Logout failed"
                )
            except PortalError as e:
                # Local state is already cleared; the backend call is a courtesy
                logger.debug("Backend logout failed  code=%s", e.code)
        return ANONYMOUS
