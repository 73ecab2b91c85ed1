#!/usr/bin/env python3
"""
hashsession - Demo Service Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes the storage and session modules
3. Exposes the current session over HTTP

All session logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from hashsession.errors import StoreError
from hashsession.logging_config import configure_logging, get_logging_config
from hashsession.modules.api import HealthResponse, SessionView, UpdateSessionRequest
from hashsession.modules.config import get_config
from hashsession.modules.middleware import get_session, install_session_support
from hashsession.modules.session import Session, SessionManager, SessionOptions
from hashsession.modules.storage import StorageModule

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.

    A manager already present on app.state (tests, embedding apps) is kept.
    """
    storage: Optional[StorageModule] = None

    if getattr(app.state, "session_manager", None) is None:
        config = get_config()
        configure_logging(config.get("log_level"))
        logger.info("Starting session service...")

        storage = StorageModule(config.get("redis_url"), password=config.get("redis_password"))
        redis_client = await storage.connect()
        app.state.redis_client = redis_client
        app.state.session_manager = SessionManager.from_options(
            SessionOptions.from_config(config, client=redis_client),
            store=storage.hash_store(),
        )
        logger.info("Session service started successfully")

    yield

    if storage:
        logger.info("Shutting down session service...")
        await storage.disconnect()
        logger.info("Session service shutdown complete")


def session_view(session: Session) -> SessionView:
    return SessionView(
        session_id=session.id,
        is_new=session.is_new,
        max_age=session.max_age,
        data=session.to_dict(),
    )


def create_app(manager: Optional[SessionManager] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        manager: Preconfigured session manager; when omitted, one is built
            from configuration at startup
    """
    app = FastAPI(
        title="hashsession",
        description="Redis hash backed request sessions",
        version="1.0.0",
        lifespan=lifespan,
    )
    install_session_support(app, manager, skip_paths={"/health": ["GET"]})

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            200: Service healthy
            503: Redis unreachable
        """
        redis_client = getattr(request.app.state, "redis_client", None)
        if redis_client is None:
            return HealthResponse(status="healthy", redis="not configured")
        try:
            await redis_client.ping()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503, content={"status": "unhealthy", "redis": "disconnected"}
            )
        return HealthResponse(status="healthy", redis="connected")

    @app.get("/session", response_model=SessionView)
    async def read_session(session: Session = Depends(get_session)):
        """Return the current session, creating one if needed."""
        return session_view(session)

    @app.patch("/session", response_model=SessionView)
    async def update_session(
        payload: UpdateSessionRequest, session: Session = Depends(get_session)
    ):
        """Set and remove fields; all changes are written in one batch."""
        for name, value in payload.updates.items():
            session[name] = value
        for name in payload.remove:
            session.discard(name)
        if payload.max_age is not None:
            session.max_age = payload.max_age
        return session_view(session)

    @app.post("/session/touch", response_model=SessionView)
    async def touch_session(session: Session = Depends(get_session)):
        """Extend the session lifetime without changing it."""
        await session.touch()
        return session_view(session)

    @app.post("/session/regenerate", response_model=SessionView)
    async def regenerate_session(session: Session = Depends(get_session)):
        """Replace the session with a fresh one under a new token."""
        new_session = await session.regenerate()
        return session_view(new_session)

    @app.delete("/session", status_code=204)
    async def destroy_session(session: Session = Depends(get_session)):
        """Delete the session record and clear the cookie."""
        session.destroy()
        return Response(status_code=204)

    @app.exception_handler(StoreError)
    async def store_error_handler(request, exc):
        """Handle session store failures during lookup."""
        logger.error(f"Session store error: {exc}")
        return JSONResponse(status_code=503, content={"error": "Session store unavailable"})

    return app


app = create_app()


if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        "hashsession.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        log_config=get_logging_config(config.get("log_level")),
    )
