"""Direct messaging between tutors and students."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from tutor_portal.domain.messages import Message

MAX_MESSAGE_LENGTH = 4000


class MessageRepository(Protocol):
    """Persistence interface for messages."""

    async def list_for_user(self, user_id: UUID) -> list[Message]:
        """Return messages sent or received by a user, oldest first."""

    async def list_conversation(
        self, user_id: UUID, other_id: UUID
    ) -> list[Message]:
        """Return messages exchanged between two users, oldest first."""

    async def create_message(
        self, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        """Insert a message and return it."""


@dataclass
class MessageService:
    """Application service for messages."""

    repository: MessageRepository

    async def list_for_user(self, user_id: UUID) -> list[Message]:
        """Return the user's inbox and outbox."""
        return await self.repository.list_for_user(user_id)

    async def conversation(self, user_id: UUID, other_id: UUID) -> list[Message]:
        """Return the thread between two users."""
        return await self.repository.list_conversation(user_id, other_id)

    async def send_message(
        self, sender_id: UUID, receiver_id: UUID, content: str
    ) -> Message:
        """Validate and send a message."""
        text = content.strip()
        if not text:
            raise ValueError("Message cannot be empty")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValueError(
                f"Message is longer than {MAX_MESSAGE_LENGTH} characters"
            )
        if sender_id == receiver_id:
            raise ValueError("Cannot send a message to yourself")
        return await self.repository.create_message(sender_id, receiver_id, text)
