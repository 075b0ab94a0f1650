"""Error handlers for FastAPI exception handling.

Every error response has the single-field schema:

    {"message": "<fixed string>"}

The message comes from the error's category (``public_message``), never
from the internal diagnostic text, so provider details do not leak to
clients. Routing errors (unknown path, unsupported method) carry the
router's status phrase, e.g. ``{"message": "Not Found"}``.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from cep_weather.core.exceptions import (
    MESSAGE_INTERNAL_ERROR,
    MESSAGE_INVALID_REQUEST_BODY,
    CepWeatherError,
)
from cep_weather.core.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Error Response Model (Pydantic)
# =============================================================================


class ErrorResponse(BaseModel):
    """Error response body.

    Attributes:
        message: One of the fixed client-facing messages.
    """

    message: str


# =============================================================================
# Status Code Mapping
# =============================================================================


def get_status_code_for_error(error: Exception) -> int:
    """Determine HTTP status code based on exception type.

    Args:
        error: The exception to get status code for.

    Returns:
        Appropriate HTTP status code.
    """
    if isinstance(error, CepWeatherError):
        return error.status_code
    return 500


def build_error_response(error: Exception) -> ErrorResponse:
    """Build the client-facing error body for *error*.

    Args:
        error: The exception that occurred.

    Returns:
        ErrorResponse carrying the category's fixed message.
    """
    if isinstance(error, CepWeatherError):
        return ErrorResponse(message=error.public_message)
    return ErrorResponse(message=MESSAGE_INTERNAL_ERROR)


# =============================================================================
# Exception Handlers
# =============================================================================


async def cep_weather_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle CepWeatherError exceptions.

    Args:
        _request: The FastAPI request (unused).
        exc: The exception that was raised.

    Returns:
        JSONResponse with the category status and message.
    """
    service_exc = exc if isinstance(exc, CepWeatherError) else None
    if service_exc is None:
        return await generic_error_handler(_request, exc)

    return JSONResponse(
        status_code=get_status_code_for_error(service_exc),
        content=build_error_response(service_exc).model_dump(),
    )


async def request_validation_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle FastAPI request validation errors as malformed requests.

    Args:
        _request: The FastAPI request (unused).
        exc: The validation exception that was raised.

    Returns:
        JSONResponse with 400 status code.
    """
    logger.debug("Request validation failed", error=str(exc))
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(message=MESSAGE_INVALID_REQUEST_BODY).model_dump(),
    )


async def http_exception_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle routing errors (unknown path, unsupported method).

    Args:
        _request: The FastAPI request (unused).
        exc: The HTTPException raised by the router.

    Returns:
        JSONResponse with the exception's status and its detail as message.
    """
    if not isinstance(exc, StarletteHTTPException):
        return await generic_error_handler(_request, exc)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(),
        headers=getattr(exc, "headers", None),
    )


async def generic_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle generic/unexpected exceptions.

    Args:
        _request: The FastAPI request (unused).
        exc: The exception that was raised.

    Returns:
        JSONResponse with 500 status code.
    """
    logger.error("Unhandled exception", error=repr(exc))
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message=MESSAGE_INTERNAL_ERROR).model_dump(),
    )


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(CepWeatherError, cep_weather_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    # Catch-all for unexpected exceptions
    app.add_exception_handler(Exception, generic_error_handler)
