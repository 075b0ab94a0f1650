"""Orchestration service route: ``GET /{cep}``.

Responses:
    200 {"city", "temp_C", "temp_F", "temp_K"}
    422 {"message": "invalid zipcode"}
    404 {"message": "can not find zipcode"}
    500 {"message": "weather service unavailable"}

The ``weather_handler`` span is the parent of the postal and weather
lookup spans. Errors leave the span (recorded there) and are turned into
responses by the registered exception handlers.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from opentelemetry.trace import SpanKind

from cep_weather.api.disconnect import run_until_disconnected
from cep_weather.observability.tracing import (
    ATTR_CEP,
    ATTR_HTTP_STATUS_CODE,
    ATTR_RESPONSE_CITY,
    ATTR_RESPONSE_TEMP_C,
    ATTR_RESPONSE_TEMP_F,
    ATTR_RESPONSE_TEMP_K,
    SPAN_WEATHER_HANDLER,
    traced_span,
)

router = APIRouter(tags=["temperature"])


@router.get(
    "/{cep}",
    summary="Current temperature for a CEP",
)
async def get_temperature(cep: str, request: Request) -> JSONResponse:
    """Resolve *cep* to its city and current temperature.

    Args:
        cep: CEP from the path, hyphen allowed.
        request: FastAPI request to access app state.

    Returns:
        JSONResponse with the temperature report.
    """
    tracer = request.app.state.tracer
    service = request.app.state.temperature_service

    with traced_span(
        tracer, SPAN_WEATHER_HANDLER, {ATTR_CEP: cep}, kind=SpanKind.SERVER
    ) as span:
        report = await run_until_disconnected(request, service.report_for(cep))
        span.set_attribute(ATTR_RESPONSE_CITY, report.city)
        span.set_attribute(ATTR_RESPONSE_TEMP_C, report.temp_c)
        span.set_attribute(ATTR_RESPONSE_TEMP_F, report.temp_f)
        span.set_attribute(ATTR_RESPONSE_TEMP_K, report.temp_k)
        span.set_attribute(ATTR_HTTP_STATUS_CODE, 200)

    return JSONResponse(status_code=200, content=report.to_wire())
