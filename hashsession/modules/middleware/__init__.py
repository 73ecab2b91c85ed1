"""
Session Middleware Module - Black Box Interface

Purpose: Bind the session engine to FastAPI / Starlette requests
Interface: SessionMiddleware, get_session dependency, install_session_support()
Hidden: Unit of work lifecycle, deferred flush draining, cookie application

Each request gets its own unit of work. Deferred flushes run after the
handler returns and before the response is sent; a failing handler
discards them.
"""

import logging
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request

from ..session import Session, SessionManager, UnitOfWork

logger = logging.getLogger(__name__)

CONTEXT_ATTR = "session_context"


class SessionMiddleware:
    """
    HTTP middleware that opens and closes a session unit of work per request.

    The manager is taken from the constructor or, when omitted, from
    ``app.state.session_manager`` at request time (set during lifespan).
    """

    def __init__(
        self,
        manager: Optional[SessionManager] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        skip_paths: Optional[Dict[str, list]] = None,
    ):
        """
        Initialize session middleware.

        Args:
            manager: Session manager (default: app.state.session_manager)
            on_error: Error channel for flush/destroy failures (default: log)
            skip_paths: Dict of {path: [methods]} that never touch sessions
        """
        self.manager = manager
        self.on_error = on_error
        self.skip_paths = skip_paths or {}

    def should_skip(self, request: Request) -> bool:
        """Check if session handling should be skipped for this request."""
        path = str(request.url.path)
        method = request.method.upper()

        if path in self.skip_paths:
            allowed_methods = self.skip_paths[path]
            if "*" in allowed_methods or method in allowed_methods:
                return True

        return False

    def resolve_manager(self, request: Request) -> SessionManager:
        manager = self.manager or getattr(request.app.state, "session_manager", None)
        if manager is None:
            raise RuntimeError("No SessionManager configured for this application")
        return manager

    async def __call__(self, request: Request, call_next):
        """Process the request inside a session unit of work."""
        if self.should_skip(request):
            return await call_next(request)

        manager = self.resolve_manager(request)
        context = UnitOfWork(request, on_error=self.on_error)
        setattr(request.state, CONTEXT_ATTR, context)

        try:
            response = await call_next(request)
        except Exception:
            logger.debug(f"Request to {request.url.path} failed; discarding session changes")
            await context.abort()
            raise

        await context.complete()
        manager.carrier.apply(context, response)
        return response


def get_context(request: Request) -> UnitOfWork:
    """Return the unit of work opened by SessionMiddleware."""
    context = getattr(request.state, CONTEXT_ATTR, None)
    if context is None:
        raise RuntimeError("SessionMiddleware is not installed or skipped this path")
    return context


async def get_session(request: Request) -> Session:
    """FastAPI dependency returning the request's session."""
    context = get_context(request)
    manager = getattr(request.app.state, "session_manager", None)
    if manager is None:
        raise RuntimeError("No SessionManager configured for this application")
    return await manager.get_or_create(context)


def install_session_support(
    app: FastAPI,
    manager: Optional[SessionManager] = None,
    on_error: Optional[Callable[[Exception], None]] = None,
    skip_paths: Optional[Dict[str, list]] = None,
) -> SessionMiddleware:
    """
    Register SessionMiddleware on an application.

    Args:
        app: FastAPI application
        manager: Session manager; may instead be set on app.state.session_manager
            during lifespan startup
        on_error: Error channel for asynchronous session failures
        skip_paths: Paths that never touch sessions {"/health": ["GET"]}

    Returns:
        The installed middleware
    """
    if manager is not None:
        app.state.session_manager = manager
    middleware = SessionMiddleware(manager, on_error=on_error, skip_paths=skip_paths)
    app.middleware("http")(middleware)
    return middleware


__all__ = [
    "SessionMiddleware",
    "get_context",
    "get_session",
    "install_session_support",
]
