"""Booking and status changes for tutoring sessions."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID

from tutor_portal.domain.sessions import (
    SESSION_STATUSES,
    TutoringSession,
    can_transition,
)
from tutor_portal.domain.users import Role

logger = logging.getLogger(__name__)

TUTOR_ONLY_STATUSES = frozenset({"confirmed", "completed"})


class SessionNotFoundError(LookupError):
    """Raised when a session does not exist or is not visible to the caller."""


class InvalidStatusTransitionError(ValueError):
    """Raised when a status change is not allowed."""


class SessionPermissionError(PermissionError):
    """Raised when a participant may not make a status change."""


class SessionRepository(Protocol):
    """Persistence interface for tutoring sessions."""

    async def list_for_owner(
        self, owner_id: UUID, role: Role
    ) -> list[TutoringSession]:
        """Return the owner's sessions ordered by start time ascending."""

    async def get_session(self, session_id: UUID) -> TutoringSession | None:
        """Return a session by id, if present."""

    async def create_session(self, payload: dict[str, object]) -> TutoringSession:
        """Insert a session row and return it."""

    async def update_status(
        self, session_id: UUID, status: str, current_status: str
    ) -> TutoringSession | None:
        """Set the status if it still equals ``current_status``.

        Returns None when no row matched.
        """


@dataclass
class SessionService:
    """Application service for session bookings."""

    repository: SessionRepository

    async def list_sessions(self, owner_id: UUID, role: Role) -> list[TutoringSession]:
        """Return every session the owner takes part in."""
        return await self.repository.list_for_owner(owner_id, role)

    async def book_session(  # noqa: PLR0913
        self,
        tutor_id: UUID,
        student_id: UUID,
        subject: str,
        start_time: datetime,
        end_time: datetime | None = None,
        notes: str = "",
    ) -> TutoringSession:
        """Create a scheduled session between a tutor and a student."""
        if not subject.strip():
            raise ValueError("A subject is required to book a session")
        if end_time is not None and end_time <= start_time:
            raise ValueError("Session must end after it starts")
        session = await self.repository.create_session(
            {
                "tutor_id": str(tutor_id),
                "student_id": str(student_id),
                "subject": subject.strip(),
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat() if end_time else None,
                "status": "scheduled",
                "notes": notes,
            }
        )
        logger.info("Booked session %s for tutor %s", session.id, tutor_id)
        return session

    async def update_status(
        self,
        session_id: UUID,
        status: str,
        participant_id: UUID | None = None,
    ) -> TutoringSession:
        """Move a session to a new status if the transition is allowed."""
        if status not in SESSION_STATUSES:
            raise InvalidStatusTransitionError(f"Unknown session status: {status}")
        session = await self.repository.get_session(session_id)
        if session is None or (
            participant_id is not None
            and participant_id not in (session.tutor_id, session.student_id)
        ):
            raise SessionNotFoundError(f"Session {session_id} not found")
        if (
            participant_id is not None
            and status in TUTOR_ONLY_STATUSES
            and participant_id != session.tutor_id
        ):
            raise SessionPermissionError(f"Only the tutor can mark a session {status}")
        if not can_transition(session.status, status):
            raise InvalidStatusTransitionError(
                f"Cannot change a {session.status} session to {status}"
            )
        updated = await self.repository.update_status(
            session_id, status, current_status=session.status
        )
        if updated is None:
            raise InvalidStatusTransitionError(
                f"Session {session_id} changed while updating its status"
            )
        logger.info("Session %s moved to %s", session_id, status)
        return updated
