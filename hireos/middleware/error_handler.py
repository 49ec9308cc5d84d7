"""Global exception handlers for the API."""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class APIError(Exception):
    """
    Base exception for API errors.

    extra holds fields rendered at the top level of the response body
    (errorType, existingCandidateId) so clients can branch on them.
    """

    def __init__(
        self,
        message: str,
        code: str = "API_ERROR",
        status_code: int = 400,
        details: dict = None,
        extra: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.extra = extra or {}
        super().__init__(message)


class BadRequestError(APIError):
    """Malformed input or missing required configuration."""

    def __init__(self, message: str, error_type: str = None, details: dict = None):
        super().__init__(
            message=message,
            code="BAD_REQUEST",
            status_code=400,
            details=details,
            extra={"errorType": error_type} if error_type else None,
        )


class UnauthorizedError(APIError):
    """No session or invalid token."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
        )


class ForbiddenError(APIError):
    """Access forbidden."""

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


class NotFoundError(APIError):
    """Resource not found (or not in the caller's account)."""

    def __init__(self, resource: str, identifier: str | int):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "id": identifier},
        )


class ConflictError(APIError):
    """Resource already exists."""

    def __init__(self, message: str, extra: dict = None):
        super().__init__(
            message=message,
            code="CONFLICT",
            status_code=409,
            extra=extra,
        )


class UnprocessableEntityError(APIError):
    """Semantically invalid request, e.g. an undeliverable candidate email."""

    def __init__(self, message: str, error_type: str = None, field: str = None):
        super().__init__(
            message=message,
            code="UNPROCESSABLE_ENTITY",
            status_code=422,
            details={"field": field} if field else {},
            extra={"errorType": error_type} if error_type else None,
        )


def error_body(code: str, message: str, details: dict = None, extra: dict = None) -> dict:
    """Build the error response body."""
    body = {
        "message": message,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
    }
    if extra:
        body.update(extra)
    return body


def setup_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        """Handle custom API errors."""
        logger.warning(
            "API error",
            code=exc.code,
            message=exc.message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.code, exc.message, exc.details, exc.extra),
        )

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle request body and Pydantic validation errors."""
        errors = exc.errors()
        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", []))
        message = first_error.get("msg", "Validation error")

        logger.warning(
            "Validation error",
            field=field,
            message=message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=422,
            content=error_body(
                "VALIDATION_ERROR",
                message,
                {"field": field, "errors": [
                    {"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")}
                    for e in errors
                ]},
            ),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        """Handle database errors."""
        logger.error(
            "Database error",
            error=str(exc),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("DATABASE_ERROR", "A database error occurred"),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected errors."""
        logger.exception(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
