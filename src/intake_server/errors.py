"""Global exception handlers — map SDK exceptions to HTTP status codes.

Every deliberate SDK failure is an ``IntakeError`` subclass, so each gets
its own handler instead of per-route try/except.  The raw exception text
may carry session or subject ids; it is logged server-side and the client
receives a generic message only.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from intake_engine.errors import (
    ConcurrentUpdateError,
    InvalidSessionStateError,
    SessionCreationError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)


def _error(status: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"detail": detail})


async def session_not_found_handler(
    request: Request, exc: SessionNotFoundError
) -> JSONResponse:
    logger.warning("Not found at %s: %s", request.url, exc)
    return _error(404, "Session not found")


async def invalid_state_handler(
    request: Request, exc: InvalidSessionStateError
) -> JSONResponse:
    logger.warning("Invalid state at %s: %s", request.url, exc)
    return _error(409, "Session is not active")


async def concurrent_update_handler(
    request: Request, exc: ConcurrentUpdateError
) -> JSONResponse:
    """A concurrent request saved the session first; the client may retry."""
    logger.warning("Concurrent update at %s: %s", request.url, exc)
    return _error(409, "Session was modified concurrently; retry the request")


async def session_creation_handler(
    request: Request, exc: SessionCreationError
) -> JSONResponse:
    logger.error("Session creation failed at %s: %s", request.url, exc)
    return _error(503, "Could not create session")


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions — log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return _error(500, "Internal server error")
