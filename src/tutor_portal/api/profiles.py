"""Profile endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from tutor_portal.api.auth import require_user
from tutor_portal.domain.users import CurrentUser
from tutor_portal.services.profiles import ProfileNotFoundError

if TYPE_CHECKING:
    from tutor_portal.containers import AppContainer

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("")
async def get_profile(
    request: Request, user: CurrentUser = Depends(require_user)
) -> dict[str, object]:
    """Return the caller's tutor or student profile."""
    container: AppContainer = request.app.state.container
    try:
        profile = await container.profile_service.get_profile(user)
    except ProfileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    return {"profile": profile}


@router.patch("")
async def update_profile(
    request: Request,
    updates: dict[str, object] = Body(...),
    user: CurrentUser = Depends(require_user),
) -> dict[str, object]:
    """Update editable fields on the caller's profile."""
    container: AppContainer = request.app.state.container
    try:
        profile = await container.profile_service.update_profile(user, updates)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return {"profile": profile}
