"""Tutor and student profile lookups."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from tutor_portal.domain.users import CurrentUser, Role

_EDITABLE_FIELDS: dict[str, frozenset[str]] = {
    "tutor": frozenset(
        {
            "name",
            "full_name",
            "email",
            "bio",
            "subjects",
            "qualifications",
            "hourly_rate",
            "availability",
            "image_url",
            "video_url",
        }
    ),
    "student": frozenset(
        {
            "name",
            "full_name",
            "email",
            "grade_level",
            "subjects",
            "learning_style",
        }
    ),
}


class ProfileNotFoundError(LookupError):
    """Raised when a user has no profile for their role."""


class ProfileRepository(Protocol):
    """Persistence interface for role profiles."""

    async def get_profile(self, role: Role, user_id: UUID) -> dict[str, object] | None:
        """Return the profile row for a user, if present."""

    async def get_profile_by_id(
        self, role: Role, profile_id: UUID
    ) -> dict[str, object] | None:
        """Return a profile row by its own id, if present."""

    async def update_profile(
        self, role: Role, user_id: UUID, updates: dict[str, object]
    ) -> dict[str, object]:
        """Apply updates to a profile row and return it."""


@dataclass
class ProfileService:
    """Application service for profiles."""

    repository: ProfileRepository

    async def get_profile(self, user: CurrentUser) -> dict[str, object]:
        """Return the caller's profile."""
        profile = await self.repository.get_profile(user.role, user.user_id)
        if profile is None:
            raise ProfileNotFoundError(f"No {user.role} profile for {user.user_id}")
        return profile

    async def resolve_owner_id(self, user: CurrentUser) -> UUID:
        """Return the profile id that scopes the user's sessions and resources."""
        profile = await self.get_profile(user)
        return UUID(str(profile["id"]))

    async def get_owner_profile(self, owner_id: UUID, role: Role) -> dict[str, object]:
        """Return the profile whose id scopes a dashboard."""
        profile = await self.repository.get_profile_by_id(role, owner_id)
        if profile is None:
            raise ProfileNotFoundError(f"No {role} profile with id {owner_id}")
        return profile

    async def update_profile(
        self, user: CurrentUser, updates: dict[str, object]
    ) -> dict[str, object]:
        """Update editable profile fields, ignoring everything else."""
        allowed = _EDITABLE_FIELDS[user.role]
        safe_updates = {key: value for key, value in updates.items() if key in allowed}
        if not safe_updates:
            raise ValueError("No editable profile fields supplied")
        return await self.repository.update_profile(
            user.role, user.user_id, safe_updates
        )
