"""Role-dispatched profile endpoints.

- GET /profiles/me          the caller's own profile, with private lists
- PUT /profiles/me          edit bio, location, skills, visibility...
- PUT /profiles/me/avatar   replace the profile picture (multipart ``file``)
- DELETE /profiles/me/avatar
- GET /profiles/{username}  someone else's profile; private ones look absent

The response shape is the same for every role; ``kind`` says which
fields are filled in.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Annotated, Any, assert_never

from fastapi import APIRouter, Depends, Response, UploadFile, status
from pydantic import BaseModel

from portal.api.certificates import CertificateOut
from portal.api.dependencies import optional_backend_client, require_backend_client
from portal.api.requests import RequestOut
from portal.api.session import UserOut
from portal.models.profile import (
    AdminProfile,
    EmployerProfile,
    IndividualProfile,
    IssuerProfile,
    Profile,
)
from portal.services import profiles as profile_service
from portal.services.api_client import ApiClient
from portal.services.errors import NotFoundError
from portal.services.session import fetch_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {_camel(k): _camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_camelize(v) for v in value]
    return value


class ProfileOut(BaseModel):
    kind: str
    user: UserOut
    stats: dict[str, Any] | None = None
    certificates: list[CertificateOut] = []
    requests: list[RequestOut] = []

    @staticmethod
    def from_profile(profile: Profile) -> ProfileOut:
        user = UserOut.from_user(profile.user)
        if isinstance(profile, IndividualProfile):
            return ProfileOut(
                kind=profile.kind,
                user=user,
                certificates=[CertificateOut.from_record(c) for c in profile.certificates],
                requests=[RequestOut.from_request(r) for r in profile.requests],
            )
        if isinstance(profile, IssuerProfile):
            return ProfileOut(
                kind=profile.kind,
                user=user,
                stats=_camelize(dataclasses.asdict(profile.stats)),
                certificates=[CertificateOut.from_record(c) for c in profile.issued],
                requests=[RequestOut.from_request(r) for r in profile.pending_requests],
            )
        if isinstance(profile, (EmployerProfile, AdminProfile)):
            return ProfileOut(
                kind=profile.kind,
                user=user,
                stats=_camelize(dataclasses.asdict(profile.stats)),
            )
        assert_never(profile)


class ProfileUpdateIn(BaseModel):
    bio: str | None = None
    location: str | None = None
    organization: str | None = None
    experience: str | None = None
    skills: list[str] | None = None
    profileVisibility: str | None = None


@router.get("/me", response_model=ProfileOut)
async def my_profile(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> ProfileOut:
    user = await fetch_current_user(client)
    profile = await profile_service.load_profile(client, user, own=True)
    return ProfileOut.from_profile(profile)


@router.put("/me", response_model=UserOut)
async def update_my_profile(
    body: ProfileUpdateIn,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> UserOut:
    user = await profile_service.update_profile(
        client,
        profile_service.ProfileUpdate(
            bio=body.bio,
            location=body.location,
            organization=body.organization,
            experience=body.experience,
            skills=tuple(body.skills) if body.skills is not None else None,
            profile_visibility=body.profileVisibility,
        ),
    )
    return UserOut.from_user(user)


class AvatarOut(BaseModel):
    avatarUrl: str


@router.put("/me/avatar", response_model=AvatarOut)
async def upload_my_avatar(
    file: UploadFile,
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> AvatarOut:
    content = await file.read()
    url = await profile_service.upload_avatar(
        client, file.filename or "avatar", content, file.content_type or ""
    )
    return AvatarOut(avatarUrl=url)


@router.delete("/me/avatar", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_avatar(
    client: Annotated[ApiClient, Depends(require_backend_client)],
) -> Response:
    await profile_service.delete_avatar(client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{username}", response_model=ProfileOut)
async def user_profile(
    username: str,
    client: Annotated[ApiClient, Depends(optional_backend_client)],
) -> ProfileOut:
    user = await profile_service.get_user(client, username)
    viewer = await fetch_current_user(client) if client.token else None
    own = viewer is not None and viewer.username == user.username

    if not own and not user.is_public:
        logger.info("Private profile hidden  user=%s", user.username)
        raise NotFoundError("User not found")

    profile = await profile_service.load_profile(client, user, own=own)
    return ProfileOut.from_profile(profile)
