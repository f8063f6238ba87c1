"""Domain models for shared teaching resources."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Resource:
    """A file a tutor shared, publicly or with specific students."""

    id: UUID
    tutor_id: UUID
    title: str
    subject: str
    file_type: str
    file_url: str
    file_path: str | None = None
    description: str = ""
    is_public: bool = False
    student_ids: tuple[UUID, ...] = field(default_factory=tuple)
    created_at: datetime | None = None

    def is_visible_to(self, student_id: UUID) -> bool:
        """Return True if the student may see this resource."""
        return self.is_public or student_id in self.student_ids


def resource_from_row(row: Mapping[str, object]) -> Resource:
    """Decode a ``resources`` row."""
    raw_students = row.get("student_ids") or []
    student_ids = (
        tuple(UUID(str(value)) for value in raw_students)
        if isinstance(raw_students, list | tuple)
        else ()
    )
    created_at = row.get("created_at")
    return Resource(
        id=UUID(str(row["id"])),
        tutor_id=UUID(str(row["tutor_id"])),
        title=str(row.get("title") or ""),
        description=str(row.get("description") or ""),
        subject=str(row.get("subject") or ""),
        file_type=str(row.get("file_type") or ""),
        file_url=str(row.get("file_url") or ""),
        file_path=str(row["file_path"]) if row.get("file_path") else None,
        is_public=bool(row.get("is_public", False)),
        student_ids=student_ids,
        created_at=(
            datetime.fromisoformat(str(created_at)) if created_at else None
        ),
    )
