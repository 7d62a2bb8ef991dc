import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.middleware import MOBILE_CORS_HEADERS, MOBILE_PATH_PREFIX

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    message: str
    details: dict[str, Any] | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    default_status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code or self.default_status_code
        self.details = details
        super().__init__(self.message)


class Unauthenticated(AppError):
    """Missing, invalid or expired credentials."""

    default_status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AppError):
    """Authenticated, but the authorization policy denies the action."""

    default_status_code = status.HTTP_403_FORBIDDEN


class ManagerWithoutCompany(Forbidden):
    """A manager with no company tried to approve or reject time entries."""


class NotFound(AppError):
    default_status_code = status.HTTP_404_NOT_FOUND


class ValidationFailed(AppError):
    default_status_code = status.HTTP_400_BAD_REQUEST


class Conflict(AppError):
    default_status_code = status.HTTP_409_CONFLICT


class InvalidState(AppError):
    """The action is illegal for the entity's current state."""

    default_status_code = status.HTTP_400_BAD_REQUEST


def _field_errors(exc: RequestValidationError) -> dict[str, Any]:
    """Group validation messages by dotted field path, dropping the location prefix."""
    fields: dict[str, list[str]] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        key = ".".join(loc[1:]) if len(loc) > 1 else ".".join(loc) or "__root__"
        fields.setdefault(key, []).append(str(error.get("msg", "")))
    return fields


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            message=exc.message,
            details=exc.details,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error=ValidationFailed.__name__,
            message="Dados inválidos",
            details=_field_errors(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        ).model_dump(),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # Runs outside the user middleware stack, so mobile CORS headers are added here.
    headers = MOBILE_CORS_HEADERS if request.url.path.startswith(MOBILE_PATH_PREFIX) else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal",
            message="Erro interno do servidor",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(),
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
