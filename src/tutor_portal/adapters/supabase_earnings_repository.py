"""Supabase-backed earnings repository."""

from dataclasses import dataclass
from uuid import UUID

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.services.earnings import EarningsRepository


@dataclass
class SupabaseEarningsRepository(EarningsRepository):
    """Supabase implementation for tutor earnings."""

    connection: SupabaseConnection

    async def list_for_tutor(self, tutor_id: UUID) -> list[dict[str, object]]:
        """Return the tutor's earnings rows, newest first."""
        client = await self.connection.client()
        response = await (
            client.table("earnings")
            .select("*")
            .eq("tutor_id", str(tutor_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [dict(row) for row in response.data or []]
