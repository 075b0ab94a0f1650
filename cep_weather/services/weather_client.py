"""Weather provider (WeatherAPI) lookup client.

Fetches current conditions for a city name. A single attempt is made:
any transport failure, timeout, non-200 status or undecodable payload
raises WeatherUnavailableError.
"""

from __future__ import annotations

import httpx
from opentelemetry.trace import SpanKind, Tracer
from pydantic import BaseModel, ValidationError

from cep_weather.core.exceptions import WeatherUnavailableError
from cep_weather.core.logging import get_logger
from cep_weather.core.models import WeatherSample
from cep_weather.observability.tracing import (
    ATTR_API,
    ATTR_HTTP_STATUS_CODE,
    ATTR_LOCALITY,
    ATTR_WEATHER_CONDITION,
    ATTR_WEATHER_LOCATION,
    ATTR_WEATHER_TEMP_C,
    SPAN_WEATHER_LOOKUP,
    traced_span,
)

logger = get_logger(__name__)

PROVIDER_NAME = "weatherapi"
DEFAULT_BASE_URL = "http://api.weatherapi.com"
CURRENT_WEATHER_PATH = "/v1/current.json"
RESPONSE_LANGUAGE = "pt"


class _Location(BaseModel):
    name: str


class _Condition(BaseModel):
    text: str = ""


class _Current(BaseModel):
    temp_c: float
    condition: _Condition = _Condition()


class WeatherApiPayload(BaseModel):
    """Subset of the WeatherAPI current.json response body."""

    location: _Location
    current: _Current


class WeatherLookupClient:
    """Client for the weather provider.

    The API key is sent as the ``key`` query parameter; the locality is
    URL-escaped by httpx when building the query string.
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        tracer: Tracer,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._http = http
        self._tracer = tracer
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def current(self, locality: str) -> WeatherSample:
        """Fetch current weather for *locality*.

        Args:
            locality: City name as resolved by the postal registry.

        Returns:
            WeatherSample named after the provider's resolved location.

        Raises:
            WeatherUnavailableError: On any failure.
        """
        with traced_span(
            self._tracer,
            SPAN_WEATHER_LOOKUP,
            {ATTR_LOCALITY: locality, ATTR_API: PROVIDER_NAME},
            kind=SpanKind.CLIENT,
        ) as span:
            try:
                response = await self._http.get(
                    f"{self._base_url}{CURRENT_WEATHER_PATH}",
                    params={"key": self._api_key, "q": locality, "lang": RESPONSE_LANGUAGE},
                    timeout=self._timeout,
                )
            except httpx.HTTPError as e:
                logger.warning(
                    "Weather lookup request failed", locality=locality, error=str(e)
                )
                raise WeatherUnavailableError(
                    f"weather provider request failed: {e!r}", locality=locality
                ) from e

            span.set_attribute(ATTR_HTTP_STATUS_CODE, response.status_code)

            if response.status_code != httpx.codes.OK:
                logger.warning(
                    "Weather lookup returned error status",
                    locality=locality,
                    status_code=response.status_code,
                )
                raise WeatherUnavailableError(
                    f"weather provider returned status {response.status_code}",
                    locality=locality,
                    upstream_status=response.status_code,
                )

            try:
                payload = WeatherApiPayload.model_validate_json(response.content)
            except ValidationError as e:
                logger.warning("Weather payload undecodable", locality=locality)
                raise WeatherUnavailableError(
                    "weather provider payload could not be decoded",
                    locality=locality,
                    upstream_status=response.status_code,
                ) from e

            sample = WeatherSample(
                location=payload.location.name,
                temp_c=payload.current.temp_c,
                condition=payload.current.condition.text,
            )
            span.set_attribute(ATTR_WEATHER_LOCATION, sample.location)
            span.set_attribute(ATTR_WEATHER_TEMP_C, sample.temp_c)
            span.set_attribute(ATTR_WEATHER_CONDITION, sample.condition)
            return sample
