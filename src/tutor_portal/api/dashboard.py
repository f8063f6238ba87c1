"""Dashboard snapshot and live Server-Sent Events stream."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from tutor_portal.api.auth import Participant, require_participant
from tutor_portal.api.models import snapshot_payload
from tutor_portal.services.dashboard import (
    DashboardController,
    DashboardLoadError,
    DashboardSnapshot,
)
from tutor_portal.services.realtime import ChannelError

if TYPE_CHECKING:
    from tutor_portal.containers import AppContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

LIVE_UPDATES_UNAVAILABLE = "Live updates are unavailable. Reload to try again."


def sse_format(event: str, data: dict[str, object]) -> str:
    """Encode one Server-Sent Event."""
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


async def dashboard_event_stream(
    controller: DashboardController,
    owner_id: UUID,
    queue: asyncio.Queue[DashboardSnapshot],
    is_disconnected: Callable[[], Awaitable[bool]],
    keepalive_seconds: float = 20.0,
) -> AsyncIterator[str]:
    """Yield dashboard snapshots until the client goes away.

    The controller is attached for the lifetime of the generator, so its
    channels are released when the client disconnects or the response is
    cancelled.
    """
    try:
        async with controller.attached(owner_id):
            while True:
                try:
                    snapshot = await asyncio.wait_for(
                        queue.get(), timeout=keepalive_seconds
                    )
                except TimeoutError:
                    yield ": keepalive\n\n"
                else:
                    while not queue.empty():
                        snapshot = queue.get_nowait()
                    yield sse_format("snapshot", snapshot_payload(snapshot))
                if await is_disconnected():
                    break
    except DashboardLoadError as exc:
        yield sse_format("error", {"message": str(exc)})
    except ChannelError:
        logger.exception("Live updates failed for %s", owner_id)
        yield sse_format("error", {"message": LIVE_UPDATES_UNAVAILABLE})


@router.get("")
async def dashboard_snapshot(
    request: Request, participant: Participant = Depends(require_participant)
) -> dict[str, object]:
    """Return the caller's dashboard collections once, without live updates."""
    container: AppContainer = request.app.state.container
    controller = container.dashboards.create(participant.user.role)
    try:
        snapshot = await controller.load(participant.owner_id)
    except DashboardLoadError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    return snapshot_payload(snapshot)


@router.get("/events")
async def dashboard_events(
    request: Request, participant: Participant = Depends(require_participant)
) -> StreamingResponse:
    """Stream the caller's dashboard as Server-Sent Events."""
    container: AppContainer = request.app.state.container
    queue: asyncio.Queue[DashboardSnapshot] = asyncio.Queue()
    controller = container.dashboards.create(
        participant.user.role, listener=queue.put_nowait
    )
    return StreamingResponse(
        dashboard_event_stream(
            controller,
            participant.owner_id,
            queue,
            request.is_disconnected,
            container.settings.sse_keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
