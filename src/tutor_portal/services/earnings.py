"""Tutor earnings records."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID


class EarningsRepository(Protocol):
    """Persistence interface for earnings rows."""

    async def list_for_tutor(self, tutor_id: UUID) -> list[dict[str, object]]:
        """Return the tutor's earnings rows, newest first."""


@dataclass
class EarningsService:
    """Application service for tutor earnings."""

    repository: EarningsRepository

    async def list_earnings(self, tutor_id: UUID) -> list[dict[str, object]]:
        """Return the tutor's earnings rows unchanged."""
        return await self.repository.list_for_tutor(tutor_id)
