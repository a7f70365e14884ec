"""Role-based profile loading.

Each role has its own profile variant (portal.models.profile).
load_profile dispatches on the role exactly once, and the final
assert_never makes a new UserRole member a type error until it gets a
branch.

Fetches that do not depend on each other (an issuer's stats, issued
certificates and pending requests, say) run concurrently with
asyncio.gather.  If any of them fails, the first error propagates and
the page shows one message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import assert_never
from urllib.parse import quote

from portal.models.certificate import ordered_skills
from portal.models.profile import (
    AdminProfile,
    AdminStats,
    EmployerProfile,
    EmployerStats,
    IndividualProfile,
    IssuerProfile,
    IssuerStats,
    Profile,
)
from portal.models.user import User, UserRole
from portal.services import certificates, request_workflow
from portal.services.api_client import ApiClient
from portal.services.errors import PreconditionError, ResponseFormatError

logger = logging.getLogger(__name__)


def _user_path(username: str, suffix: str = "") -> str:
    name = (username or "").strip()
    if not name:
        raise PreconditionError("Username is required")
    return f"/users/{quote(name, safe='')}{suffix}"


async def get_user(client: ApiClient, username: str) -> User:
    raw = await client.get(
        _user_path(username), operation="get_user", fallback="User not found"
    )
    return User.from_payload(raw or {})


async def issuer_stats(client: ApiClient, username: str) -> IssuerStats:
    raw = await client.get(
        _user_path(username, "/issuer-stats"),
        operation="issuer_stats",
        fallback="Failed to load issuer stats",
    )
    return IssuerStats.from_payload(raw)


async def employer_stats(client: ApiClient, username: str) -> EmployerStats:
    raw = await client.get(
        _user_path(username, "/employer-stats"),
        operation="employer_stats",
        fallback="Failed to load employer stats",
    )
    return EmployerStats.from_payload(raw)


async def admin_stats(client: ApiClient) -> AdminStats:
    raw = await client.get(
        "/users/admin/stats",
        operation="admin_stats",
        fallback="Failed to load system stats",
    )
    return AdminStats.from_payload(raw)


async def load_profile(client: ApiClient, user: User, *, own: bool = True) -> Profile:
    """Build the profile variant for ``user``.

    ``own`` is True when the viewer is the profile owner; private lists
    (my certificates, pending requests) are only fetched then.
    """
    role = user.role
    if role is UserRole.INDIVIDUAL:
        if not own:
            return IndividualProfile(user=user)
        certs, reqs = await asyncio.gather(
            certificates.my_certificates(client),
            request_workflow.my_requests(client),
        )
        return IndividualProfile(user=user, certificates=tuple(certs), requests=tuple(reqs))

    if role is UserRole.ISSUER:
        if not own:
            return IssuerProfile(user=user, stats=await issuer_stats(client, user.username))
        stats, issued, pending = await asyncio.gather(
            issuer_stats(client, user.username),
            certificates.issued_certificates(client),
            request_workflow.pending(client),
        )
        return IssuerProfile(
            user=user,
            stats=stats,
            issued=tuple(issued),
            pending_requests=tuple(pending),
        )

    if role is UserRole.EMPLOYER:
        return EmployerProfile(user=user, stats=await employer_stats(client, user.username))

    if role is UserRole.ADMIN:
        return AdminProfile(user=user, stats=await admin_stats(client))

    assert_never(role)


# ---------------------------------------------------------------------------
# Profile edits
# ---------------------------------------------------------------------------

# Same limits the backend validates; checked here to fail before sending
_FIELD_LIMITS = {"bio": 500, "location": 100, "organization": 100, "experience": 100}


@dataclass(frozen=True, slots=True)
class ProfileUpdate:
    bio: str | None = None
    location: str | None = None
    organization: str | None = None
    experience: str | None = None
    skills: tuple[str, ...] | None = None
    profile_visibility: str | None = None  # public|private

    def to_payload(self) -> dict:
        payload: dict = {}
        for field_name, limit in _FIELD_LIMITS.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            if len(value) > limit:
                raise PreconditionError(
                    f"{field_name.capitalize()} must not exceed {limit} characters"
                )
            payload[field_name] = value
        if self.skills is not None:
            payload["skills"] = list(ordered_skills(self.skills))
        if self.profile_visibility is not None:
            visibility = self.profile_visibility.strip().upper()
            if visibility not in ("PUBLIC", "PRIVATE"):
                raise PreconditionError("Profile visibility must be public or private")
            payload["profileVisibility"] = visibility
        return payload


async def update_profile(client: ApiClient, update: ProfileUpdate) -> User:
    payload = update.to_payload()
    if not payload:
        raise PreconditionError("Nothing to update")
    raw = await client.put(
        "/users/profile",
        json=payload,
        operation="update_profile",
        fallback="Failed to update profile",
    )
    user = User.from_payload(raw or {})
    logger.info("Profile updated  user=%s fields=%s", user.username, sorted(payload))
    return user


# ---------------------------------------------------------------------------
# Profile picture
# ---------------------------------------------------------------------------

AVATAR_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
AVATAR_MAX_BYTES = 5 * 1024 * 1024


async def upload_avatar(
    client: ApiClient, filename: str, content: bytes, content_type: str
) -> str:
    """Replace the caller's profile picture; returns the new avatar URL."""
    if not content:
        raise PreconditionError("File is empty")
    if len(content) > AVATAR_MAX_BYTES:
        raise PreconditionError("File size exceeds 5MB limit")
    content_type = (content_type or "").lower()
    if content_type not in AVATAR_CONTENT_TYPES:
        raise PreconditionError(
            "Invalid file type. Only JPEG, PNG, and WebP images are allowed"
        )

    raw = await client.post(
        "/users/profile/picture",
        files={"file": (filename or "avatar", content, content_type)},
        operation="upload_avatar",
        fallback="Failed to upload profile picture",
    )
    url = raw.get("avatarUrl") if isinstance(raw, dict) else None
    if not isinstance(url, str) or not url:
        raise ResponseFormatError("Upload response carries no avatarUrl")
    logger.info("Profile picture uploaded  bytes=%d type=%s", len(content), content_type)
    return url


async def delete_avatar(client: ApiClient) -> None:
    await client.delete(
        "/users/profile/picture",
        operation="delete_avatar",
        fallback="Failed to delete profile picture",
    )
    logger.info("Profile picture deleted")
