"""Supabase-backed resource repository."""

from dataclasses import dataclass
from uuid import UUID

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.domain.resources import Resource, resource_from_row
from tutor_portal.services.resources import ResourceRepository


@dataclass
class SupabaseResourceRepository(ResourceRepository):
    """Supabase implementation for resource rows."""

    connection: SupabaseConnection

    async def list_for_tutor(self, tutor_id: UUID) -> list[Resource]:
        """Return resources owned by a tutor, newest first."""
        client = await self.connection.client()
        response = await (
            client.table("resources")
            .select("*")
            .eq("tutor_id", str(tutor_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [resource_from_row(row) for row in response.data or []]

    async def list_for_student(self, student_id: UUID) -> list[Resource]:
        """Return public resources plus those shared with the student."""
        client = await self.connection.client()
        response = await (
            client.table("resources")
            .select("*")
            .or_(f"is_public.eq.true,student_ids.cs.{{{student_id}}}")
            .order("created_at", desc=True)
            .execute()
        )
        return [resource_from_row(row) for row in response.data or []]

    async def get_resource(self, resource_id: UUID) -> Resource | None:
        """Return a resource by id, if present."""
        client = await self.connection.client()
        response = await (
            client.table("resources")
            .select("*")
            .eq("id", str(resource_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return resource_from_row(response.data[0])

    async def create_resource(self, payload: dict[str, object]) -> Resource:
        """Insert a resource row and return it."""
        client = await self.connection.client()
        response = await client.table("resources").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create resource")
        return resource_from_row(response.data[0])

    async def delete_resource(self, resource_id: UUID) -> None:
        """Delete a resource row."""
        client = await self.connection.client()
        await client.table("resources").delete().eq("id", str(resource_id)).execute()
