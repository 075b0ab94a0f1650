"""Postal registry (ViaCEP) lookup client.

Resolves a CEP to its locality. ViaCEP answers unknown codes with
``200 {"erro": true}``; an empty ``localidade`` is treated the same way,
since the provider is not consistent about setting the flag.

Failure mapping:
    transport error / timeout -> PostalLookupFailedError
    non-200 status            -> PostalLookupFailedError
    undecodable payload       -> PostalLookupFailedError
    erro flag / no locality   -> ZipcodeNotFoundError
"""

from __future__ import annotations

from typing import Any

import httpx
from opentelemetry.trace import SpanKind, Tracer
from pydantic import BaseModel, ConfigDict, ValidationError

from cep_weather.core.exceptions import PostalLookupFailedError, ZipcodeNotFoundError
from cep_weather.core.logging import get_logger
from cep_weather.core.models import PostalCodeQuery, PostalCodeRecord
from cep_weather.observability.tracing import (
    ATTR_API,
    ATTR_CEP,
    ATTR_CEP_FOUND,
    ATTR_HTTP_STATUS_CODE,
    ATTR_LOCALITY,
    ATTR_REGION,
    SPAN_POSTAL_LOOKUP,
    traced_span,
)

logger = get_logger(__name__)

PROVIDER_NAME = "viacep"
DEFAULT_BASE_URL = "https://viacep.com.br"


class ViaCepPayload(BaseModel):
    """Subset of the ViaCEP response body; other fields are kept as extras."""

    model_config = ConfigDict(extra="allow")

    cep: str | None = None
    localidade: str | None = None
    uf: str | None = None
    erro: bool = False


class PostalLookupClient:
    """Client for the postal-code registry.

    Example:
        client = PostalLookupClient(http=httpx.AsyncClient(), tracer=tracer)
        record = await client.lookup(PostalCodeQuery.parse("01310-100"))
    """

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        tracer: Tracer,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
    ) -> None:
        self._http = http
        self._tracer = tracer
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _url(self, cep: str) -> str:
        return f"{self._base_url}/ws/{cep}/json/"

    async def lookup(self, query: PostalCodeQuery) -> PostalCodeRecord:
        """Resolve *query* to an address record.

        Args:
            query: Validated CEP.

        Returns:
            PostalCodeRecord with a non-empty locality.

        Raises:
            ZipcodeNotFoundError: Registry does not know the code.
            PostalLookupFailedError: Registry unreachable or answered badly.
        """
        cep = query.cep
        with traced_span(
            self._tracer,
            SPAN_POSTAL_LOOKUP,
            {ATTR_CEP: cep, ATTR_API: PROVIDER_NAME},
            kind=SpanKind.CLIENT,
        ) as span:
            try:
                response = await self._http.get(self._url(cep), timeout=self._timeout)
            except httpx.HTTPError as e:
                logger.warning("Postal lookup request failed", cep=cep, error=str(e))
                raise PostalLookupFailedError(
                    f"postal registry request failed: {e!r}", cep=cep
                ) from e

            span.set_attribute(ATTR_HTTP_STATUS_CODE, response.status_code)

            if response.status_code != httpx.codes.OK:
                logger.warning(
                    "Postal lookup returned error status",
                    cep=cep,
                    status_code=response.status_code,
                )
                raise PostalLookupFailedError(
                    f"postal registry returned status {response.status_code}",
                    cep=cep,
                    upstream_status=response.status_code,
                )

            try:
                payload = ViaCepPayload.model_validate_json(response.content)
            except ValidationError as e:
                logger.warning("Postal lookup payload undecodable", cep=cep)
                raise PostalLookupFailedError(
                    "postal registry payload could not be decoded",
                    cep=cep,
                    upstream_status=response.status_code,
                ) from e

            if payload.erro or not payload.localidade:
                span.set_attribute(ATTR_CEP_FOUND, False)
                raise ZipcodeNotFoundError(
                    f"CEP {cep} not found", cep=cep, upstream_status=response.status_code
                )

            span.set_attribute(ATTR_CEP_FOUND, True)
            span.set_attribute(ATTR_LOCALITY, payload.localidade)
            span.set_attribute(ATTR_REGION, payload.uf or "")

            raw: dict[str, Any] = payload.model_dump()
            return PostalCodeRecord(
                cep=cep,
                locality=payload.localidade,
                region=payload.uf or "",
                raw=raw,
            )
