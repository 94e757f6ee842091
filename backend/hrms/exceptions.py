import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = False
    message: str
    error: str
    errors: list[dict[str, Any]] | None = None


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or semantically invalid input."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class AuthenticationError(AppError):
    """Missing, malformed or expired credentials."""

    def __init__(self, message: str = "Access token required") -> None:
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED)


class PermissionDeniedError(AppError):
    """Role or ownership check failed."""

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    """Duplicate key or an operation that conflicts with current state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class PolicyNotFoundError(NotFoundError):
    def __init__(self, leave_type: str) -> None:
        super().__init__(f"Leave policy not found for {leave_type}")
        self.leave_type = leave_type


class SelfAssignmentError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Employee cannot be their own manager")


class HierarchyCycleError(ConflictError):
    """A manager chain revisits an employee."""

    def __init__(self, employee_id: object) -> None:
        super().__init__(f"Manager hierarchy contains a cycle at employee {employee_id}")
        self.employee_id = employee_id


class InvalidTransitionError(ConflictError):
    """A review status change that the lifecycle does not allow."""

    def __init__(self, current: str, action: str) -> None:
        super().__init__(f"Cannot {action.lower()} a review in {current} status")
        self.current = current
        self.action = action


class SettingNotEditableError(PermissionDeniedError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Setting {key} is not editable")
        self.key = key


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            message=exc.message,
            error=type(exc).__name__,
        ).model_dump(exclude_none=True),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            ErrorResponse(
                message="Validation error",
                error="ValidationError",
                errors=errors,
            ).model_dump(exclude_none=True)
        ),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            message="Internal server error",
            error="InternalError",
        ).model_dump(exclude_none=True),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_exception_handler)
