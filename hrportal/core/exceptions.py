"""
Domain errors and global exception handlers.

Every business rule raises an ``HRPortalError`` subclass; the handlers
below turn them into ``{"detail": ..., "success": false}`` bodies and
prevent stack-trace leakage for everything else.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class HRPortalError(Exception):
    """Base for recoverable errors surfaced to the caller as a message."""

    status_code: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> dict[str, Any]:
        return {"detail": self.message, "success": False}


class NotAuthenticatedError(HRPortalError):
    status_code = 401
    default_message = "Could not validate credentials"


class ForbiddenError(HRPortalError):
    status_code = 403
    default_message = "HR privileges required"


class NotFoundError(HRPortalError):
    status_code = 404
    default_message = "Resource not found"


class InvalidDateRangeError(HRPortalError):
    status_code = 422
    default_message = "Invalid date range"


class InvalidStateTransitionError(HRPortalError):
    status_code = 409
    default_message = "Invalid state transition"


class ConcurrentUpdateError(HRPortalError):
    status_code = 409
    default_message = "Record was modified by another request; reload and retry"


class AlreadyCheckedInError(HRPortalError):
    status_code = 409
    default_message = "Already checked in today"


class InsufficientBalanceError(HRPortalError):
    status_code = 409

    def __init__(self, leave_type: str, available: int, requested: int) -> None:
        self.leave_type = leave_type
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient {leave_type} leave balance. You have {available} days "
            f"available but requested {requested} days."
        )

    def payload(self) -> dict[str, Any]:
        body = super().payload()
        body.update(available=self.available, requested=self.requested)
        return body


# ── Handlers ────────────────────────────────────────────────────────
async def _domain_error_handler(_request: Request, exc: HRPortalError) -> JSONResponse:
    headers = None
    if isinstance(exc, NotAuthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.payload(), headers=headers)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _stale_data_handler(_request: Request, exc: StaleDataError) -> JSONResponse:
    logger.warning("Optimistic concurrency conflict: %s", exc)
    return JSONResponse(
        status_code=ConcurrentUpdateError.status_code,
        content=ConcurrentUpdateError().payload(),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HRPortalError, _domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StaleDataError, _stale_data_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
