"""Resource uploads, listing and deletion."""

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Protocol
from uuid import UUID, uuid4

from tutor_portal.domain.resources import Resource
from tutor_portal.domain.users import Role

logger = logging.getLogger(__name__)

_MB = 1024 * 1024
MAX_UPLOAD_BYTES = 10 * _MB

ALLOWED_CONTENT_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (
        "docx"
    ),
    "application/vnd.ms-powerpoint": "ppt",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": (
        "pptx"
    ),
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/zip": "zip",
    "application/x-zip-compressed": "zip",
}
ALLOWED_EXTENSIONS = ("pdf", "doc", "docx", "ppt", "pptx", "xls", "xlsx", "zip")


class UploadValidationError(ValueError):
    """Raised when a file breaks an upload constraint."""

    def __init__(self, constraint: str, message: str) -> None:
        super().__init__(message)
        self.constraint = constraint


class ResourceNotFoundError(LookupError):
    """Raised when a resource does not exist or belongs to another tutor."""


class ResourceRepository(Protocol):
    """Persistence interface for resource rows."""

    async def list_for_tutor(self, tutor_id: UUID) -> list[Resource]:
        """Return resources owned by a tutor."""

    async def list_for_student(self, student_id: UUID) -> list[Resource]:
        """Return public resources and those shared with the student."""

    async def get_resource(self, resource_id: UUID) -> Resource | None:
        """Return a resource by id, if present."""

    async def create_resource(self, payload: dict[str, object]) -> Resource:
        """Insert a resource row and return it."""

    async def delete_resource(self, resource_id: UUID) -> None:
        """Delete a resource row."""


class StorageGateway(Protocol):
    """Object storage for uploaded files."""

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at ``path`` and return their public URL."""

    async def remove(self, path: str) -> None:
        """Delete the object at ``path``."""


@dataclass(frozen=True)
class ResourceUpload:
    """A file a tutor wants to share."""

    tutor_id: UUID
    filename: str
    content_type: str
    data: bytes
    subject: str
    title: str | None = None
    description: str = ""
    is_public: bool = False
    student_ids: tuple[UUID, ...] = field(default_factory=tuple)


def validate_upload(
    content_type: str | None, size: int, max_bytes: int = MAX_UPLOAD_BYTES
) -> str:
    """Check size and type limits and return the file extension to use."""
    if size > max_bytes:
        raise UploadValidationError(
            "size",
            f"File is {size / _MB:.1f} MB; the maximum size is "
            f"{max_bytes / _MB:g} MB.",
        )
    normalized = (content_type or "").split(";")[0].strip().lower()
    extension = ALLOWED_CONTENT_TYPES.get(normalized)
    if extension is None:
        allowed = ", ".join(ALLOWED_EXTENSIONS)
        raise UploadValidationError(
            "type",
            f"File type {normalized or 'unknown'} is not allowed. "
            f"Allowed types: {allowed}.",
        )
    return extension


@dataclass
class ResourceService:
    """Application service for tutor resources."""

    repository: ResourceRepository
    storage: StorageGateway
    max_upload_bytes: int = MAX_UPLOAD_BYTES

    async def list_resources(self, owner_id: UUID, role: Role) -> list[Resource]:
        """Return the resources a tutor owns or a student may see."""
        if role == "tutor":
            return await self.repository.list_for_tutor(owner_id)
        return await self.repository.list_for_student(owner_id)

    async def upload_resource(self, upload: ResourceUpload) -> Resource:
        """Validate, store and register an uploaded file."""
        extension = validate_upload(
            upload.content_type, len(upload.data), self.max_upload_bytes
        )
        path = f"resources/{upload.tutor_id}/{uuid4().hex}.{extension}"
        public_url = await self.storage.upload(path, upload.data, upload.content_type)
        title = upload.title or PurePosixPath(upload.filename).stem or upload.filename
        try:
            resource = await self.repository.create_resource(
                {
                    "tutor_id": str(upload.tutor_id),
                    "title": title,
                    "description": upload.description,
                    "subject": upload.subject,
                    "file_type": extension,
                    "file_url": public_url,
                    "file_path": path,
                    "is_public": upload.is_public,
                    "student_ids": [str(value) for value in upload.student_ids],
                }
            )
        except Exception:
            logger.exception("Failed to register resource, removing %s", path)
            await self.storage.remove(path)
            raise
        logger.info("Uploaded resource %s for tutor %s", resource.id, upload.tutor_id)
        return resource

    async def delete_resource(self, resource_id: UUID, tutor_id: UUID) -> None:
        """Delete a tutor's resource row and its stored file."""
        resource = await self.repository.get_resource(resource_id)
        if resource is None or resource.tutor_id != tutor_id:
            raise ResourceNotFoundError(f"Resource {resource_id} not found")
        await self.repository.delete_resource(resource_id)
        if resource.file_path:
            await self.storage.remove(resource.file_path)
