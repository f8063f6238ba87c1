"""Domain models for authenticated users."""

from dataclasses import dataclass
from typing import Literal
from uuid import UUID

Role = Literal["tutor", "student"]

ROLES: frozenset[str] = frozenset({"tutor", "student"})


@dataclass(frozen=True)
class CurrentUser:
    """The signed-in user as reported by the auth platform."""

    user_id: UUID
    role: Role
    email: str | None = None


def parse_role(value: object) -> Role | None:
    """Return the role claim if it names a known role."""
    if isinstance(value, str) and value in ROLES:
        return value  # type: ignore[return-value]
    return None
