"""
SafeHome Console API

FastAPI application factory. The lifespan constructs (or adopts) the
SafeHomeClient, starts it, and closes it on shutdown, which cancels
pending inference writes and drains in-flight notifications.

Usage:
    uvicorn safehome.api.app:create_app --factory --port 8080
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..client import SafeHomeClient
from ..config import Settings
from ..errors import SafeHomeError
from .alerts_api import alerts_router
from .auth_api import auth_router
from .console_api import console_router
from .devices_api import devices_router
from .settings_api import settings_router


logger = logging.getLogger(__name__)


async def safehome_error_handler(request: Request, exc: SafeHomeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("[API] %s %s -> %s: %s", request.method, request.url.path, exc.title, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "title": exc.title},
    )


def create_app(settings: Optional[Settings] = None, client: Optional[SafeHomeClient] = None) -> FastAPI:
    """Build the console API around `client` (constructed from `settings` if omitted)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = client or SafeHomeClient(settings or Settings())
        await owned.start()
        app.state.client = owned
        logger.info("[STARTUP] SafeHome Console API %s ready", __version__)
        try:
            yield
        finally:
            await owned.close()
            app.state.client = None

    app = FastAPI(
        title="SafeHome Console",
        description="Device, alert, contact and policy management for SafeHome",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(SafeHomeError, safehome_error_handler)

    app.include_router(auth_router)
    app.include_router(devices_router)
    app.include_router(alerts_router)
    app.include_router(settings_router)
    app.include_router(console_router)

    @app.get("/health")
    async def health():
        state_client = getattr(app.state, "client", None)
        return {
            "status": "ok" if state_client is not None and state_client.started else "starting",
            "version": __version__,
        }

    return app
