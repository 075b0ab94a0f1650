"""Orchestration state machine: CEP -> locality -> weather -> report.

States:
    RECEIVED -> VALIDATING -> LOOKING_UP_POSTAL_CODE -> LOOKING_UP_WEATHER
    -> BUILDING_RESPONSE -> DONE

Early exits raise typed errors, mapped to HTTP by the exception handlers:
    VALIDATING              -> InvalidZipcodeError      (422)
    LOOKING_UP_POSTAL_CODE  -> ZipcodeNotFoundError     (404, for ANY postal failure)
    LOOKING_UP_WEATHER      -> WeatherUnavailableError  (500)

Each transition is added as an event on the active span.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from opentelemetry import trace

from cep_weather.core.exceptions import (
    InvalidZipcodeError,
    PostalLookupError,
    ZipcodeNotFoundError,
)
from cep_weather.core.logging import get_logger
from cep_weather.core.models import (
    PostalCodeQuery,
    PostalCodeRecord,
    TemperatureReport,
    WeatherSample,
)
from cep_weather.observability.tracing import (
    ATTR_VALIDATION,
    VALIDATION_INVALID_ZIPCODE,
)

logger = get_logger(__name__)

STATE_EVENT = "state_transition"


class HandlerState(str, Enum):
    """States of the orchestration handler."""

    RECEIVED = "received_request"
    VALIDATING = "validating"
    LOOKING_UP_POSTAL_CODE = "looking_up_postal_code"
    LOOKING_UP_WEATHER = "looking_up_weather"
    BUILDING_RESPONSE = "building_response"
    DONE = "done"


class PostalLookup(Protocol):
    async def lookup(self, query: PostalCodeQuery) -> PostalCodeRecord: ...


class WeatherLookup(Protocol):
    async def current(self, locality: str) -> WeatherSample: ...


def _enter(state: HandlerState) -> None:
    trace.get_current_span().add_event(STATE_EVENT, {"state": state.value})


class TemperatureService:
    """Sequences validation and the two upstream lookups.

    Lookups run strictly in order; the weather provider is only called
    with a locality from a successful postal lookup.
    """

    def __init__(self, *, postal: PostalLookup, weather: WeatherLookup) -> None:
        self._postal = postal
        self._weather = weather

    async def report_for(self, raw_cep: str) -> TemperatureReport:
        """Build the temperature report for *raw_cep*.

        Args:
            raw_cep: CEP taken from the request path.

        Returns:
            TemperatureReport named after the weather provider's location.

        Raises:
            InvalidZipcodeError: Malformed CEP; no upstream call is made.
            ZipcodeNotFoundError: Postal lookup failed for any reason.
            WeatherUnavailableError: Weather lookup failed.
        """
        _enter(HandlerState.RECEIVED)

        _enter(HandlerState.VALIDATING)
        try:
            query = PostalCodeQuery.parse(raw_cep)
        except InvalidZipcodeError:
            trace.get_current_span().set_attribute(
                ATTR_VALIDATION, VALIDATION_INVALID_ZIPCODE
            )
            logger.debug("Rejected malformed CEP", cep=raw_cep)
            raise

        _enter(HandlerState.LOOKING_UP_POSTAL_CODE)
        try:
            record = await self._postal.lookup(query)
        except PostalLookupError as e:
            logger.info(
                "Postal lookup failed",
                cep=query.cep,
                error_code=e.error_code,
                upstream_status=e.upstream_status,
            )
            if isinstance(e, ZipcodeNotFoundError):
                raise
            # Registry outages are reported to clients as not found
            raise ZipcodeNotFoundError(
                f"postal lookup failed: {e.message}",
                cep=query.cep,
                upstream_status=e.upstream_status,
            ) from e

        _enter(HandlerState.LOOKING_UP_WEATHER)
        sample = await self._weather.current(record.locality)

        _enter(HandlerState.BUILDING_RESPONSE)
        report = TemperatureReport.from_sample(sample)

        _enter(HandlerState.DONE)
        return report
