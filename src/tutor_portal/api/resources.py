"""Resource listing, upload and deletion endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)
from fastapi.encoders import jsonable_encoder

from tutor_portal.api.auth import Participant, require_participant, require_role
from tutor_portal.services.resources import (
    ResourceNotFoundError,
    ResourceUpload,
    UploadValidationError,
)

if TYPE_CHECKING:
    from tutor_portal.containers import AppContainer

router = APIRouter(prefix="/resources", tags=["resources"])

_VALIDATION_STATUS = {
    "size": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    "type": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


@router.get("")
async def list_resources(
    request: Request, participant: Participant = Depends(require_participant)
) -> dict[str, object]:
    """Return the resources the caller owns or may see."""
    container: AppContainer = request.app.state.container
    resources = await container.resource_service.list_resources(
        participant.owner_id, participant.user.role
    )
    return {"resources": jsonable_encoder(resources)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_resource(  # noqa: PLR0913
    request: Request,
    file: UploadFile = File(...),
    subject: str = Form(...),
    title: str | None = Form(default=None),
    description: str = Form(default=""),
    is_public: bool = Form(default=False),
    student_ids: list[UUID] = Form(default=[]),
    participant: Participant = Depends(require_role("tutor")),
) -> dict[str, object]:
    """Upload a file and share it publicly or with specific students."""
    container: AppContainer = request.app.state.container
    data = await file.read()
    upload = ResourceUpload(
        tutor_id=participant.owner_id,
        filename=file.filename or "resource",
        content_type=file.content_type or "",
        data=data,
        subject=subject,
        title=title,
        description=description,
        is_public=is_public,
        student_ids=tuple(student_ids),
    )
    try:
        resource = await container.resource_service.upload_resource(upload)
    except UploadValidationError as exc:
        raise HTTPException(
            status_code=_VALIDATION_STATUS.get(
                exc.constraint, status.HTTP_400_BAD_REQUEST
            ),
            detail=str(exc),
        ) from exc
    return {"resource": jsonable_encoder(resource)}


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: UUID,
    request: Request,
    participant: Participant = Depends(require_role("tutor")),
) -> None:
    """Delete one of the caller's resources."""
    container: AppContainer = request.app.state.container
    try:
        await container.resource_service.delete_resource(
            resource_id, participant.owner_id
        )
    except ResourceNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
