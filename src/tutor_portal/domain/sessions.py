"""Domain models for tutoring sessions."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

SESSION_STATUSES = frozenset(
    {"pending", "scheduled", "confirmed", "completed", "cancelled"}
)
TERMINAL_STATUSES = frozenset({"completed", "cancelled"})

_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"scheduled", "confirmed", "cancelled"}),
    "scheduled": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


@dataclass(frozen=True)
class ParticipantSummary:
    """Denormalized display data for the other party of a session."""

    id: UUID
    name: str
    email: str | None = None


@dataclass(frozen=True)
class TutoringSession:
    """A booked lesson between a tutor and a student."""

    id: UUID
    tutor_id: UUID
    student_id: UUID
    subject: str
    start_time: datetime
    status: str
    end_time: datetime | None = None
    notes: str = ""
    student: ParticipantSummary | None = None
    tutor: ParticipantSummary | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


def can_transition(current: str, target: str) -> bool:
    """Return True if a session may move from ``current`` to ``target``."""
    return target in _TRANSITIONS.get(current, frozenset())


def session_from_row(row: Mapping[str, object]) -> TutoringSession:
    """Decode a ``sessions`` row, with optional joined profiles."""
    return TutoringSession(
        id=UUID(str(row["id"])),
        tutor_id=UUID(str(row["tutor_id"])),
        student_id=UUID(str(row["student_id"])),
        subject=str(row.get("subject") or ""),
        start_time=_parse_datetime(row["start_time"]),
        end_time=(
            _parse_datetime(row["end_time"]) if row.get("end_time") else None
        ),
        status=str(row.get("status") or "pending"),
        notes=str(row.get("notes") or ""),
        student=_participant(row.get("student_profiles")),
        tutor=_participant(row.get("tutor_profiles")),
    )


def _participant(value: object) -> ParticipantSummary | None:
    if not isinstance(value, Mapping) or not value.get("id"):
        return None
    email = value.get("email")
    return ParticipantSummary(
        id=UUID(str(value["id"])),
        name=str(value.get("name") or value.get("full_name") or ""),
        email=str(email) if email else None,
    )


def _parse_datetime(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
