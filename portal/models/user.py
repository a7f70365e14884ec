from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from portal.models.certificate import ordered_skills, require
from portal.services.errors import ResponseFormatError


class UserRole(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    ISSUER = "ISSUER"
    EMPLOYER = "EMPLOYER"
    ADMIN = "ADMIN"


# Admin accounts are provisioned by the backend, never self-registered.
SELF_REGISTER_ROLES = frozenset({UserRole.INDIVIDUAL, UserRole.ISSUER, UserRole.EMPLOYER})


@dataclass(frozen=True, slots=True)
class User:
    id: str
    email: str
    username: str
    role: UserRole
    avatar: str | None = None
    bio: str | None = None
    skills: tuple[str, ...] = ()
    organization: str | None = None
    location: str | None = None
    experience: str | None = None
    profile_visibility: str = "public"  # public|private

    @property
    def is_public(self) -> bool:
        return self.profile_visibility == "public"

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> User:
        if not isinstance(payload, Mapping):
            raise ResponseFormatError("User payload must be an object")

        raw_role = str(require(payload, "role")).upper()
        try:
            role = UserRole(raw_role)
        except ValueError:
            raise ResponseFormatError(f"Unknown user role {raw_role!r}") from None

        return User(
            id=str(require(payload, "id")),
            email=payload.get("email") or "",
            username=str(require(payload, "username")),
            role=role,
            avatar=payload.get("avatar") or None,
            bio=payload.get("bio") or None,
            skills=ordered_skills(payload.get("skills")),
            organization=payload.get("organization") or None,
            location=payload.get("location") or None,
            experience=payload.get("experience") or None,
            profile_visibility=str(payload.get("profileVisibility") or "public").lower(),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "role": self.role.value,
            "avatar": self.avatar,
            "bio": self.bio,
            "skills": list(self.skills),
            "organization": self.organization,
            "location": self.location,
            "experience": self.experience,
            "profileVisibility": self.profile_visibility,
        }
