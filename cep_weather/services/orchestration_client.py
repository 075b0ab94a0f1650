"""HTTP client boundary used by the input service to call orchestration.

The outgoing request carries the W3C trace context of the
``call_service_b`` span, so the orchestration service continues the
same trace instead of starting a new one.

Status mapping (by status code, never by response text):
    200       -> TemperatureReport
    422       -> InvalidZipcodeError
    404       -> ZipcodeNotFoundError
    otherwise -> UpstreamStatusError (also transport failures and bad 200 bodies)
"""

from __future__ import annotations

import httpx
from opentelemetry.trace import SpanKind, Tracer
from pydantic import ValidationError

from cep_weather.core.exceptions import (
    InvalidZipcodeError,
    UpstreamStatusError,
    ZipcodeNotFoundError,
)
from cep_weather.core.logging import get_logger
from cep_weather.core.models import PostalCodeQuery, TemperatureReport
from cep_weather.observability.tracing import (
    ATTR_CEP,
    ATTR_HTTP_STATUS_CODE,
    ATTR_SERVICE,
    SPAN_CALL_ORCHESTRATION,
    inject_trace_context,
    traced_span,
)

logger = get_logger(__name__)

TARGET_SERVICE = "service-b"

STATUS_OK = 200
STATUS_NOT_FOUND = 404
STATUS_UNPROCESSABLE = 422


class OrchestrationClient:
    """Calls ``GET {base_url}/{cep}`` on the orchestration service."""

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        tracer: Tracer,
        base_url: str,
        timeout: float = 30.0,
    ) -> None:
        self._http = http
        self._tracer = tracer
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def fetch_report(self, query: PostalCodeQuery) -> TemperatureReport:
        """Ask the orchestration service for the report of *query*.

        Args:
            query: Locally validated CEP.

        Returns:
            TemperatureReport relayed from the orchestration service.

        Raises:
            InvalidZipcodeError: Orchestration answered 422.
            ZipcodeNotFoundError: Orchestration answered 404.
            UpstreamStatusError: Any other outcome.
        """
        cep = query.cep
        with traced_span(
            self._tracer,
            SPAN_CALL_ORCHESTRATION,
            {ATTR_SERVICE: TARGET_SERVICE, ATTR_CEP: cep},
            kind=SpanKind.CLIENT,
        ) as span:
            headers = inject_trace_context()
            try:
                response = await self._http.get(
                    f"{self._base_url}/{cep}", headers=headers, timeout=self._timeout
                )
            except httpx.HTTPError as e:
                logger.warning("Orchestration request failed", cep=cep, error=str(e))
                raise UpstreamStatusError(
                    f"orchestration request failed: {e!r}"
                ) from e

            status_code = response.status_code
            span.set_attribute(ATTR_HTTP_STATUS_CODE, status_code)

            if status_code == STATUS_OK:
                try:
                    return TemperatureReport.model_validate_json(response.content)
                except ValidationError as e:
                    raise UpstreamStatusError(
                        "orchestration response could not be decoded",
                        upstream_status=status_code,
                    ) from e
            if status_code == STATUS_UNPROCESSABLE:
                raise InvalidZipcodeError("orchestration rejected CEP format", cep=cep)
            if status_code == STATUS_NOT_FOUND:
                raise ZipcodeNotFoundError("orchestration could not find CEP", cep=cep)

            logger.warning(
                "Orchestration returned unmapped status", cep=cep, status_code=status_code
            )
            raise UpstreamStatusError(
                f"orchestration returned status {status_code}", upstream_status=status_code
            )
