"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tutor_portal.api.auth import router as auth_router
from tutor_portal.api.dashboard import router as dashboard_router
from tutor_portal.api.messages import router as messages_router
from tutor_portal.api.profiles import router as profiles_router
from tutor_portal.api.resources import router as resources_router
from tutor_portal.api.sessions import router as sessions_router
from tutor_portal.app_logging import configure_logging
from tutor_portal.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to release realtime channels on shutdown")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(auth_router)
    app.include_router(profiles_router)
    app.include_router(sessions_router)
    app.include_router(resources_router)
    app.include_router(messages_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
