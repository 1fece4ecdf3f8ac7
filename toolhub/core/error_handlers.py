"""Global exception handlers for standardized error responses."""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError

from toolhub.core.exceptions import BaseAPIException
from toolhub.schemas.response import (
    ErrorResponse,
    ValidationErrorDetail,
    ValidationErrorResponse,
)

logger = logging.getLogger(__name__)


def _json(status_code: int, error_response: ErrorResponse) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=error_response.model_dump(mode="json")
    )


async def base_api_exception_handler(
    request: Request, exc: BaseAPIException
) -> JSONResponse:
    """Handle custom API exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"API Exception: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
        },
    )

    return _json(
        exc.status_code,
        ErrorResponse(message=exc.message, error_code=exc.error_code, details=exc.details),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.warning(
        f"Validation Error: {exc.errors()}",
        extra={"path": request.url.path},
    )

    validation_errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        validation_errors.append(
            ValidationErrorDetail(
                field=field, message=error["msg"], value=error.get("input")
            )
        )

    return _json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationErrorResponse(
            message="Validation failed",
            validation_errors=validation_errors,
            details={"error_count": len(validation_errors)},
        ),
    )


async def duplicate_key_exception_handler(
    request: Request, exc: DuplicateKeyError
) -> JSONResponse:
    """Unique indexes surface as conflicts."""
    key_pattern = (exc.details or {}).get("keyPattern", {})
    logger.warning(
        "Duplicate key rejected by the store",
        extra={"path": request.url.path, "key_pattern": list(key_pattern)},
    )

    return _json(
        status.HTTP_409_CONFLICT,
        ErrorResponse(
            message="Resource already exists",
            error_code="CONFLICT",
            details={"fields": list(key_pattern)},
        ),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    logger.warning(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )

    return _json(
        exc.status_code,
        ErrorResponse(
            message=str(exc.detail),
            error_code="HTTP_ERROR",
            details={"status_code": exc.status_code},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        f"Unexpected error: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "exception_type": type(exc).__name__},
    )

    return _json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            message="An unexpected error occurred",
            error_code="INTERNAL_SERVER_ERROR",
            details={"exception_type": type(exc).__name__},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler above to an application."""
    app.add_exception_handler(BaseAPIException, base_api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
