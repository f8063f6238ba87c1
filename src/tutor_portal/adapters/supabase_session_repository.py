"""Supabase-backed session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.domain.sessions import TutoringSession, session_from_row
from tutor_portal.domain.users import Role
from tutor_portal.services.sessions import SessionRepository

_SESSION_COLUMNS = (
    "*, student_profiles(id, name, email), tutor_profiles(id, name, email)"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for tutoring sessions."""

    connection: SupabaseConnection

    async def list_for_owner(
        self, owner_id: UUID, role: Role
    ) -> list[TutoringSession]:
        """Return the owner's sessions, earliest first."""
        column = "tutor_id" if role == "tutor" else "student_id"
        client = await self.connection.client()
        response = await (
            client.table("sessions")
            .select(_SESSION_COLUMNS)
            .eq(column, str(owner_id))
            .order("start_time")
            .execute()
        )
        return [session_from_row(row) for row in response.data or []]

    async def get_session(self, session_id: UUID) -> TutoringSession | None:
        """Return a session by id, if present."""
        client = await self.connection.client()
        response = await (
            client.table("sessions")
            .select(_SESSION_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return session_from_row(response.data[0])

    async def create_session(self, payload: dict[str, object]) -> TutoringSession:
        """Insert a session row and return it."""
        client = await self.connection.client()
        response = await client.table("sessions").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create session")
        return session_from_row(response.data[0])

    async def update_status(
        self, session_id: UUID, status: str, current_status: str
    ) -> TutoringSession | None:
        """Set the status only while the row still has ``current_status``."""
        client = await self.connection.client()
        response = await (
            client.table("sessions")
            .update(
                {
                    "status": status,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            )
            .eq("id", str(session_id))
            .eq("status", current_status)
            .execute()
        )
        if not response.data:
            return None
        return session_from_row(response.data[0])
