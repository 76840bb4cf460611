"""
Global exception handlers for FastAPI application.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from loguru import logger
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from bonlog.utils.exceptions import (
    BonLogException,
    SearchUnavailableError,
    AuthenticationError,
    AuthorizationError,
    ValidationError as CustomValidationError,
)
from bonlog.utils.formatters import format_error_response


async def bonlog_exception_handler(request: Request, exc: BonLogException) -> JSONResponse:
    """Handle custom BON-LOG exceptions."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers = None

    # Map exception types to status codes
    if isinstance(exc, AuthenticationError):
        status_code = status.HTTP_401_UNAUTHORIZED
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, AuthorizationError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, CustomValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, SearchUnavailableError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    error_response = format_error_response(exc, status_code)

    if status_code >= 500:
        logger.opt(exception=exc).error("BON-LOG exception: {}", exc.message)
    else:
        logger.warning("BON-LOG exception: {}", exc.message)

    return JSONResponse(
        status_code=status_code,
        content=error_response,
        headers=headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append({
            "field": field,
            "message": error.get("msg"),
            "type": error.get("type")
        })

    error_response = {
        "error": "ValidationError",
        "detail": "Request validation failed",
        "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
        "errors": errors
    }

    logger.warning("Validation error: {}", errors)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions."""
    if isinstance(exc, SQLAlchemyTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "ServiceUnavailable",
                "detail": "Database is busy (connection pool exhausted). Please retry in a moment.",
                "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
            },
            headers={"Retry-After": "3"},
        )

    error_response = {
        "error": exc.__class__.__name__,
        "detail": "Internal server error",
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
    }

    logger.opt(exception=exc).error("Unhandled exception: {}", exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response
    )
