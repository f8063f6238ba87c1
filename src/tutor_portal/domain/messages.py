"""Domain models for direct messages."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Message:
    """A direct message between two users."""

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    created_at: datetime | None = None

    def involves(self, user_id: UUID) -> bool:
        return user_id in (self.sender_id, self.receiver_id)


def message_from_row(row: Mapping[str, object]) -> Message:
    """Decode a ``messages`` row."""
    created_at = row.get("created_at")
    return Message(
        id=UUID(str(row["id"])),
        sender_id=UUID(str(row["sender_id"])),
        receiver_id=UUID(str(row["receiver_id"])),
        content=str(row.get("content") or ""),
        created_at=(
            datetime.fromisoformat(str(created_at)) if created_at else None
        ),
    )
