"""Input service route: ``POST /`` with body ``{"cep": "<string>"}``.

Validates the CEP locally, then forwards it to the orchestration service
and relays the outcome:

    200 report relayed as-is
    400 {"message": "invalid request body"}
    422 {"message": "invalid zipcode"}       (no network call made)
    404 {"message": "can not find zipcode"}
    500 {"message": "internal server error"}
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from opentelemetry.trace import SpanKind
from pydantic import BaseModel, StrictStr, ValidationError

from cep_weather.api.disconnect import run_until_disconnected
from cep_weather.core.exceptions import InvalidZipcodeError, MalformedRequestError
from cep_weather.core.logging import get_logger
from cep_weather.core.models import PostalCodeQuery
from cep_weather.observability.tracing import (
    ATTR_CEP,
    ATTR_CITY,
    ATTR_HTTP_STATUS_CODE,
    ATTR_TEMP_C,
    ATTR_VALIDATION,
    SPAN_CEP_HANDLER,
    VALIDATION_INVALID_JSON,
    VALIDATION_INVALID_ZIPCODE,
    traced_span,
)

logger = get_logger(__name__)


class CepRequest(BaseModel):
    """Request body. A missing ``cep`` is an empty (invalid) code."""

    cep: StrictStr = ""


router = APIRouter(tags=["input"])


@router.post(
    "/",
    summary="Current temperature for a CEP",
)
async def submit_cep(request: Request) -> JSONResponse:
    """Validate the submitted CEP and delegate to the orchestration service.

    Args:
        request: FastAPI request; the body is decoded here so malformed
            JSON maps to 400 rather than FastAPI's default 422.

    Returns:
        JSONResponse with the temperature report.
    """
    tracer = request.app.state.tracer
    client = request.app.state.orchestration_client
    body = await request.body()

    with traced_span(tracer, SPAN_CEP_HANDLER, kind=SpanKind.SERVER) as span:
        try:
            payload = CepRequest.model_validate_json(body)
        except ValidationError as e:
            span.set_attribute(ATTR_VALIDATION, VALIDATION_INVALID_JSON)
            raise MalformedRequestError(f"undecodable request body: {e.error_count()} errors") from e

        span.set_attribute(ATTR_CEP, payload.cep)

        try:
            query = PostalCodeQuery.parse(payload.cep)
        except InvalidZipcodeError:
            span.set_attribute(ATTR_VALIDATION, VALIDATION_INVALID_ZIPCODE)
            logger.debug("Rejected malformed CEP", cep=payload.cep)
            raise

        report = await run_until_disconnected(request, client.fetch_report(query))
        span.set_attribute(ATTR_CITY, report.city)
        span.set_attribute(ATTR_TEMP_C, report.temp_c)
        span.set_attribute(ATTR_HTTP_STATUS_CODE, 200)

    return JSONResponse(status_code=200, content=report.to_wire())
