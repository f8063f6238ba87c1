"""Direct message endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder

from tutor_portal.api.auth import Participant, require_participant
from tutor_portal.api.models import SendMessageRequest

if TYPE_CHECKING:
    from tutor_portal.containers import AppContainer

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{other_id}")
async def conversation(
    other_id: UUID,
    request: Request,
    participant: Participant = Depends(require_participant),
) -> dict[str, object]:
    """Return the thread between the caller and another user."""
    container: AppContainer = request.app.state.container
    messages = await container.message_service.conversation(
        participant.owner_id, other_id
    )
    return {"messages": jsonable_encoder(messages)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageRequest,
    request: Request,
    participant: Participant = Depends(require_participant),
) -> dict[str, object]:
    """Send a message to another user."""
    container: AppContainer = request.app.state.container
    try:
        message = await container.message_service.send_message(
            participant.owner_id, body.receiver_id, body.content
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return {"message": jsonable_encoder(message)}
