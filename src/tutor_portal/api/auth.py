"""Bearer-token auth dependencies and social sign-in endpoints."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from tutor_portal.domain.users import CurrentUser, Role
from tutor_portal.services.auth import AuthenticationError, SocialLoginError
from tutor_portal.services.profiles import ProfileNotFoundError

if TYPE_CHECKING:
    from tutor_portal.containers import AppContainer

router = APIRouter(prefix="/auth", tags=["auth"])


@dataclass(frozen=True)
class Participant:
    """An authenticated user together with their profile id."""

    user: CurrentUser
    owner_id: UUID


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def require_user(
    request: Request,
    authorization: str | None = Header(default=None),
    access_token: str | None = Query(default=None),
) -> CurrentUser:
    """Resolve the caller from a bearer header or an ``access_token`` query.

    The query parameter exists for EventSource clients, which cannot set
    headers.
    """
    container: AppContainer = request.app.state.container
    token = _bearer_token(authorization) or access_token
    try:
        return await container.auth_service.authenticate(token)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc


async def require_participant(
    request: Request, user: CurrentUser = Depends(require_user)
) -> Participant:
    """Resolve the caller's tutor or student profile id."""
    container: AppContainer = request.app.state.container
    try:
        owner_id = await container.profile_service.resolve_owner_id(user)
    except ProfileNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Create a {user.role} profile first",
        ) from exc
    return Participant(user=user, owner_id=owner_id)


def require_role(role: Role) -> Callable[..., Awaitable[Participant]]:
    """Build a dependency that only admits participants with ``role``."""

    async def dependency(
        participant: Participant = Depends(require_participant),
    ) -> Participant:
        if participant.user.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Only {role}s can do this",
            )
        return participant

    return dependency


@router.get("/oauth/{provider}")
async def social_login(provider: str, request: Request, role: Role) -> dict[str, str]:
    """Return the URL that starts a social sign-in."""
    container: AppContainer = request.app.state.container
    try:
        url = await container.auth_service.social_login_url(provider, role)
    except SocialLoginError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {"url": url}


@router.get("/me")
async def me(user: CurrentUser = Depends(require_user)) -> dict[str, object]:
    """Return the signed-in user."""
    return {"user_id": str(user.user_id), "role": user.role, "email": user.email}
