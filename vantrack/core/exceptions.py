"""
Domain error taxonomy and the global exception handlers that turn it into
``{"success": false, "error": "..."}`` responses without leaking stack traces.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class VanTrackError(Exception):
    """Base class for errors raised by domain services."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(VanTrackError):
    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(VanTrackError):
    status_code = 401
    default_message = "Could not validate credentials"


class ForbiddenError(VanTrackError):
    status_code = 403
    default_message = "Operator privileges required"


class NotFoundError(VanTrackError):
    status_code = 404
    default_message = "Not found"


class ConflictError(VanTrackError):
    status_code = 409
    default_message = "Conflict"


class InternalError(VanTrackError):
    pass


def _error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


# ── Handlers ────────────────────────────────────────────────────────
async def _vantrack_error_handler(_request: Request, exc: VanTrackError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Domain failure: %s", exc.message, exc_info=exc)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return _error_response(exc.status_code, exc.message, headers)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    parts = []
    for err in exc.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return _error_response(400, "; ".join(parts) or "Invalid request")


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _error_response(429, f"Rate limit exceeded: {exc.detail}")


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return _error_response(409, "Database constraint violation")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    err = InternalError("Internal database error")
    return _error_response(err.status_code, err.message)


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(VanTrackError, _vantrack_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
