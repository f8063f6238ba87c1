"""Pydantic request models and response shaping for the HTTP API."""

from datetime import datetime
from uuid import UUID

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from tutor_portal.services.dashboard import DashboardSnapshot


class BookSessionRequest(BaseModel):
    """Booking request; the counterpart is the tutor or student being booked."""

    counterpart_id: UUID
    subject: str = Field(min_length=1, max_length=200)
    start_time: datetime
    end_time: datetime | None = None
    notes: str = ""


class SessionStatusRequest(BaseModel):
    """Requested status change for a session."""

    status: str


class SendMessageRequest(BaseModel):
    """Outgoing direct message."""

    receiver_id: UUID
    content: str = Field(min_length=1)


def snapshot_payload(snapshot: DashboardSnapshot) -> dict[str, object]:
    """Convert a dashboard snapshot into a JSON-ready dict."""
    return {
        "type": "snapshot",
        "role": snapshot.role,
        "owner_id": str(snapshot.owner_id) if snapshot.owner_id else None,
        "loading": snapshot.loading,
        "error": snapshot.error,
        "sessions": jsonable_encoder(list(snapshot.sessions)),
        "resources": jsonable_encoder(list(snapshot.resources)),
        "messages": jsonable_encoder(list(snapshot.messages)),
        "earnings": jsonable_encoder(list(snapshot.earnings)),
        "profile": jsonable_encoder(snapshot.profile),
    }
