"""Server error handling - sanitizes errors for client responses.

Clients get a safe message and a reference code; the exception itself, which
may name files, block ids or utterances, is only logged server-side under the
same reference.
"""

import logging
import uuid
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from tilbot.core.errors import (
    DEFAULT_ERROR_MESSAGE,
    ConfigError,
    GraphResolutionError,
    ProjectError,
    SessionClosedError,
    SessionExistsError,
    SessionNotFoundError,
    get_safe_error_message,
)

logger = logging.getLogger(__name__)

SUPPORT_MESSAGE = "If this problem persists, contact support with the reference code."

# First matching class wins; anything unlisted is a 500
STATUS_BY_EXCEPTION: tuple[tuple[type[Exception], int], ...] = (
    (SessionNotFoundError, 404),
    (SessionExistsError, 409),
    (SessionClosedError, 409),
    (GraphResolutionError, 409),
    (ProjectError, 500),
    (ConfigError, 500),
)


def create_error_reference() -> str:
    """Generate unique error reference for client/server correlation."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def get_http_status_for_exception(exception: Exception) -> int:
    """Map exception types to HTTP status codes."""
    for exception_type, status_code in STATUS_BY_EXCEPTION:
        if isinstance(exception, exception_type):
            return status_code
    return 500


def log_error_with_context(
    error_ref: str,
    exception: Exception,
    session_id: str | None = None,
    endpoint: str | None = None,
) -> None:
    """Log full error details server-side.

    Client errors (4xx) are logged at WARNING without a traceback, everything
    else at ERROR with one.
    """
    server_side = get_http_status_for_exception(exception) >= 500
    logger.log(
        logging.ERROR if server_side else logging.WARNING,
        f"[{error_ref}] {type(exception).__name__} in {endpoint or 'unknown'}: {exception}",
        exc_info=server_side,
        extra={
            "error_reference": error_ref,
            "session_id": session_id or "-",
            "endpoint": endpoint,
            "exception_type": type(exception).__name__,
        },
    )


def _error_body(error_ref: str, message: str) -> dict[str, Any]:
    return {"error": message, "reference": error_ref, "message": SUPPORT_MESSAGE}


def create_error_response(
    exception: Exception,
    session_id: str | None = None,
    endpoint: str | None = None,
) -> HTTPException:
    """Log ``exception`` and build the sanitized HTTPException for the client."""
    error_ref = create_error_reference()
    log_error_with_context(error_ref, exception, session_id, endpoint)
    return HTTPException(
        status_code=get_http_status_for_exception(exception),
        detail=_error_body(error_ref, get_safe_error_message(exception)),
    )


async def tilbot_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for engine errors escaping an endpoint."""
    error = create_error_response(exc, request.path_params.get("session_id"), request.url.path)
    return JSONResponse(status_code=error.status_code, content=error.detail)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for uncaught exceptions."""
    error_ref = create_error_reference()
    log_error_with_context(error_ref, exc, request.path_params.get("session_id"), request.url.path)
    return JSONResponse(status_code=500, content=_error_body(error_ref, DEFAULT_ERROR_MESSAGE))
