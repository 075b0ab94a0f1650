"""Custom exceptions for the cep-weather services.

Every error carries the HTTP status and the fixed client-facing message
of its category, so handlers translate errors structurally instead of
inspecting message text. The ``message`` attribute holds the internal,
diagnostic text (recorded on spans and logs); ``public_message`` is the
only text that ever reaches a client.

Exception Hierarchy:
    CepWeatherError (base)                 500 "internal server error"
    ├── MalformedRequestError              400 "invalid request body"
    ├── InvalidZipcodeError                422 "invalid zipcode"
    ├── PostalLookupError
    │   ├── ZipcodeNotFoundError           404 "can not find zipcode"
    │   └── PostalLookupFailedError        500 (collapsed to 404 by orchestration)
    ├── WeatherUnavailableError            500 "weather service unavailable"
    └── UpstreamStatusError                500 "internal server error"
"""

from __future__ import annotations

from enum import Enum
from typing import Any


# =============================================================================
# Wire Messages (fixed client contract)
# =============================================================================

MESSAGE_INVALID_REQUEST_BODY = "invalid request body"
MESSAGE_INVALID_ZIPCODE = "invalid zipcode"
MESSAGE_ZIPCODE_NOT_FOUND = "can not find zipcode"
MESSAGE_WEATHER_UNAVAILABLE = "weather service unavailable"
MESSAGE_INTERNAL_ERROR = "internal server error"


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """Error codes for cep-weather exceptions.

    Codes identify the error category in logs and span attributes.
    """

    CEP_WEATHER_ERROR = "CEP_WEATHER_ERROR"
    MALFORMED_REQUEST = "MALFORMED_REQUEST"
    INVALID_ZIPCODE = "INVALID_ZIPCODE"
    ZIPCODE_NOT_FOUND = "ZIPCODE_NOT_FOUND"
    POSTAL_LOOKUP_FAILED = "POSTAL_LOOKUP_FAILED"
    WEATHER_UNAVAILABLE = "WEATHER_UNAVAILABLE"
    UNMAPPED_UPSTREAM_STATUS = "UNMAPPED_UPSTREAM_STATUS"


# =============================================================================
# Base Exception
# =============================================================================


class CepWeatherError(Exception):
    """Base exception for all cep-weather errors.

    Attributes:
        message: Internal diagnostic message.
        error_code: Machine-readable error code from ErrorCode enum.
        status_code: HTTP status of this error category.
        public_message: Fixed message returned to clients.
    """

    status_code: int = 500
    public_message: str = MESSAGE_INTERNAL_ERROR
    default_error_code: ErrorCode = ErrorCode.CEP_WEATHER_ERROR

    def __init__(
        self,
        message: str | None = None,
        error_code: str | ErrorCode | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Internal diagnostic message. Defaults to public_message.
            error_code: Machine-readable error code. Defaults to the class code.
            **kwargs: Additional attributes to set on the exception.
        """
        message = message if message is not None else self.public_message
        super().__init__(message)
        self.message = message
        code = error_code if error_code is not None else self.default_error_code
        self.error_code = code.value if isinstance(code, ErrorCode) else code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Request Contract Errors
# =============================================================================


class MalformedRequestError(CepWeatherError):
    """Request body could not be decoded into a CEP request."""

    status_code = 400
    public_message = MESSAGE_INVALID_REQUEST_BODY
    default_error_code = ErrorCode.MALFORMED_REQUEST


class InvalidZipcodeError(CepWeatherError):
    """CEP is not exactly 8 digits after stripping separators.

    Attributes:
        cep: The rejected input.
    """

    status_code = 422
    public_message = MESSAGE_INVALID_ZIPCODE
    default_error_code = ErrorCode.INVALID_ZIPCODE

    def __init__(self, message: str | None = None, cep: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.cep = cep


# =============================================================================
# Postal Lookup Errors
# =============================================================================


class PostalLookupError(CepWeatherError):
    """Base class for postal registry lookup failures.

    Attributes:
        cep: The queried code.
        upstream_status: HTTP status received from the registry, if any.
    """

    def __init__(
        self,
        message: str | None = None,
        cep: str | None = None,
        upstream_status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.cep = cep
        self.upstream_status = upstream_status


class ZipcodeNotFoundError(PostalLookupError):
    """Registry answered but does not know the code."""

    status_code = 404
    public_message = MESSAGE_ZIPCODE_NOT_FOUND
    default_error_code = ErrorCode.ZIPCODE_NOT_FOUND


class PostalLookupFailedError(PostalLookupError):
    """Registry could not be reached or answered with an unusable response."""

    default_error_code = ErrorCode.POSTAL_LOOKUP_FAILED


# =============================================================================
# Weather Lookup Errors
# =============================================================================


class WeatherUnavailableError(CepWeatherError):
    """Weather provider could not be reached or answered with an error.

    Attributes:
        locality: The queried city name.
        upstream_status: HTTP status received from the provider, if any.
    """

    status_code = 500
    public_message = MESSAGE_WEATHER_UNAVAILABLE
    default_error_code = ErrorCode.WEATHER_UNAVAILABLE

    def __init__(
        self,
        message: str | None = None,
        locality: str | None = None,
        upstream_status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.locality = locality
        self.upstream_status = upstream_status


# =============================================================================
# Orchestration Call Errors
# =============================================================================


class UpstreamStatusError(CepWeatherError):
    """Orchestration call failed with a status outside the known contract.

    Also raised for transport failures, where upstream_status is None.

    Attributes:
        upstream_status: HTTP status received from the orchestration service.
    """

    status_code = 500
    public_message = MESSAGE_INTERNAL_ERROR
    default_error_code = ErrorCode.UNMAPPED_UPSTREAM_STATUS

    def __init__(
        self,
        message: str | None = None,
        upstream_status: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status
