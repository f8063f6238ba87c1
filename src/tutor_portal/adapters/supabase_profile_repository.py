"""Supabase-backed profile repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.domain.users import Role
from tutor_portal.services.profiles import ProfileRepository

_PROFILE_TABLES: dict[str, str] = {
    "tutor": "tutor_profiles",
    "student": "student_profiles",
}


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for tutor and student profiles."""

    connection: SupabaseConnection

    async def get_profile(self, role: Role, user_id: UUID) -> dict[str, object] | None:
        """Return the profile row for a user, if present."""
        client = await self.connection.client()
        response = await (
            client.table(_PROFILE_TABLES[role])
            .select("*")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return dict(response.data[0])

    async def get_profile_by_id(
        self, role: Role, profile_id: UUID
    ) -> dict[str, object] | None:
        """Return a profile row by its own id, if present."""
        client = await self.connection.client()
        response = await (
            client.table(_PROFILE_TABLES[role])
            .select("*")
            .eq("id", str(profile_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return dict(response.data[0])

    async def update_profile(
        self, role: Role, user_id: UUID, updates: dict[str, object]
    ) -> dict[str, object]:
        """Apply updates to a profile row and return it."""
        client = await self.connection.client()
        response = await (
            client.table(_PROFILE_TABLES[role])
            .update({**updates, "updated_at": datetime.now(tz=UTC).isoformat()})
            .eq("user_id", str(user_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update profile")
        return dict(response.data[0])
