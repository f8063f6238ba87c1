"""Session booking endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder

from tutor_portal.api.auth import Participant, require_participant
from tutor_portal.api.models import BookSessionRequest, SessionStatusRequest
from tutor_portal.services.sessions import (
    InvalidStatusTransitionError,
    SessionNotFoundError,
    SessionPermissionError,
)

if TYPE_CHECKING:
    from tutor_portal.containers import AppContainer

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("")
async def list_sessions(
    request: Request, participant: Participant = Depends(require_participant)
) -> dict[str, object]:
    """Return the caller's sessions, earliest first."""
    container: AppContainer = request.app.state.container
    sessions = await container.session_service.list_sessions(
        participant.owner_id, participant.user.role
    )
    return {"sessions": jsonable_encoder(sessions)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def book_session(
    body: BookSessionRequest,
    request: Request,
    participant: Participant = Depends(require_participant),
) -> dict[str, object]:
    """Book a session with the counterpart tutor or student."""
    container: AppContainer = request.app.state.container
    if participant.user.role == "tutor":
        tutor_id, student_id = participant.owner_id, body.counterpart_id
    else:
        tutor_id, student_id = body.counterpart_id, participant.owner_id
    try:
        session = await container.session_service.book_session(
            tutor_id=tutor_id,
            student_id=student_id,
            subject=body.subject,
            start_time=body.start_time,
            end_time=body.end_time,
            notes=body.notes,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return {"session": jsonable_encoder(session)}


@router.patch("/{session_id}/status")
async def update_session_status(
    session_id: UUID,
    body: SessionStatusRequest,
    request: Request,
    participant: Participant = Depends(require_participant),
) -> dict[str, object]:
    """Change a session's status."""
    container: AppContainer = request.app.state.container
    try:
        session = await container.session_service.update_status(
            session_id, body.status, participant_id=participant.owner_id
        )
    except SessionNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except SessionPermissionError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)
        ) from exc
    except InvalidStatusTransitionError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    return {"session": jsonable_encoder(session)}
