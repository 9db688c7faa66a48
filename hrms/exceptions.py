import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def _format_days(days: float) -> str:
    return f"{days:g}"


# ---------------------------------------------------------------------------
# Leave workflow failures
# ---------------------------------------------------------------------------


class InvalidRange(AppError):
    def __init__(self, message: str = "Start date must be on or before end date") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class UnknownLeaveType(AppError):
    def __init__(self) -> None:
        super().__init__("Invalid leave type", status_code=status.HTTP_400_BAD_REQUEST)


class InsufficientBalance(AppError):
    """Raised when a leave asks for more working days than the ledger has available."""

    def __init__(self, available: float) -> None:
        self.available = available
        super().__init__(
            f"Insufficient leave balance. Available: {_format_days(available)} days",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class NotFound(AppError):
    def __init__(self, entity: str = "Leave") -> None:
        super().__init__(f"{entity} not found", status_code=status.HTTP_404_NOT_FOUND)


class AlreadyFinalized(AppError):
    def __init__(self, current_status: str) -> None:
        self.current_status = current_status
        super().__init__(f"Leave is already {current_status}", status_code=status.HTTP_400_BAD_REQUEST)


class AlreadyCancelled(AppError):
    def __init__(self) -> None:
        super().__init__("Leave is already cancelled", status_code=status.HTTP_400_BAD_REQUEST)


class CannotCancelApproved(AppError):
    def __init__(self) -> None:
        super().__init__(
            "Cannot cancel an approved leave. Please contact admin.",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class DuplicateLeaveType(AppError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Leave type '{name}' already exists", status_code=status.HTTP_409_CONFLICT)


class Forbidden(AppError):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


# ---------------------------------------------------------------------------
# Time tracking failures
# ---------------------------------------------------------------------------


class AlreadyClockedIn(AppError):
    def __init__(self) -> None:
        super().__init__(
            "You are already clocked in. Please clock out first.",
            status_code=status.HTTP_409_CONFLICT,
        )


class NoOpenSession(AppError):
    def __init__(self) -> None:
        super().__init__(
            "No active session found. Please clock in first.",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class AlreadyOnBreak(AppError):
    def __init__(self) -> None:
        super().__init__("Already on break. Please break out first.", status_code=status.HTTP_409_CONFLICT)


class NotOnBreak(AppError):
    def __init__(self) -> None:
        super().__init__("Not on break. Please break in first.", status_code=status.HTTP_400_BAD_REQUEST)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


async def _database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="InternalError",
            detail=None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _database_exception_handler)  # type: ignore[arg-type]
