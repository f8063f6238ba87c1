"""Supabase-backed message repository."""

from dataclasses import dataclass
from uuid import UUID

from tutor_portal.adapters.supabase_connection import SupabaseConnection
from tutor_portal.domain.messages import Message, message_from_row
from tutor_portal.services.messages import MessageRepository


@dataclass
class SupabaseMessageRepository(MessageRepository):
    """Supabase implementation for messages."""

    connection: SupabaseConnection

    async def list_for_user(self, user_id: UUID) -> list[Message]:
        """Return messages sent or received by a user, oldest first."""
        client = await self.connection.client()
        response = await (
            client.table("messages")
            .select("*")
            .or_(f"sender_id.eq.{user_id},receiver_id.eq.{user_id}")
            .order("created_at")
            .execute()
        )
        return [message_from_row(row) for row in response.data or []]

    async def list_conversation(
        self, user_id: UUID, other_id: UUID
    ) -> list[Message]:
        """Return messages exchanged between two users, oldest first."""
        client = await self.connection.client()
        response = await (
            client.table("messages")
            .select("*")
            .or_(
                f"and(sender_id.eq.{user_id},receiver_id.eq.{other_id}),"
                f"and(sender_id.eq.{other_id},receiver_id.eq.{user_id})"
            )
            .order("created_at")
            .execute()
        )
        return [message_from_row(row) for row in response.data or []]

    async def create_message(
        self, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        """Insert a message and return it."""
        client = await self.connection.client()
        response = await (
            client.table("messages")
            .insert(
                {
                    "sender_id": str(sender_id),
                    "receiver_id": str(receiver_id),
                    "content": content,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to send message")
        return message_from_row(response.data[0])
