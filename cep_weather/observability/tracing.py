"""OpenTelemetry tracing for the cep-weather services.

Trace context enters the input service with the client request (or starts
there), travels to the orchestration service in W3C ``traceparent`` headers,
and continues there so both services report spans under one trace ID.

Span names and attribute keys below are an observable contract: dashboards
and trace queries depend on them.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Callable, Optional

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagate import extract, inject
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from cep_weather.core.exceptions import CepWeatherError

# =============================================================================
# Span Contract
# =============================================================================

SPAN_CEP_HANDLER = "cep_handler"
SPAN_CALL_ORCHESTRATION = "call_service_b"
SPAN_WEATHER_HANDLER = "weather_handler"
SPAN_POSTAL_LOOKUP = "get_cep_info"
SPAN_WEATHER_LOOKUP = "get_weather_info"

ATTR_CEP = "cep"
ATTR_API = "api"
ATTR_SERVICE = "service"
ATTR_VALIDATION = "validation"
ATTR_HTTP_STATUS_CODE = "http.status_code"
ATTR_CEP_FOUND = "cep.found"
ATTR_LOCALITY = "localidade"
ATTR_REGION = "uf"
ATTR_WEATHER_LOCATION = "weather.location"
ATTR_WEATHER_TEMP_C = "weather.temp_c"
ATTR_WEATHER_CONDITION = "weather.condition"
ATTR_CITY = "city"
ATTR_TEMP_C = "temp_c"
ATTR_RESPONSE_CITY = "response.city"
ATTR_RESPONSE_TEMP_C = "response.temp_c"
ATTR_RESPONSE_TEMP_F = "response.temp_f"
ATTR_RESPONSE_TEMP_K = "response.temp_k"
ATTR_ERROR_CODE = "error.code"
ATTR_CANCELLED = "cancelled"

VALIDATION_INVALID_ZIPCODE = "invalid_zipcode"
VALIDATION_INVALID_JSON = "invalid_json"


# =============================================================================
# Provider Setup
# =============================================================================


def setup_tracing(
    service_name: str,
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    exporter: Optional[SpanExporter] = None,
) -> TracerProvider:
    """Build a TracerProvider for one service.

    Spans are batched and exported off the request path. The provider is
    returned rather than installed globally; callers pass tracers from it
    to the components that need them.

    Args:
        service_name: Name of the service for resource identification
        service_version: Version recorded on the resource
        otlp_endpoint: OTLP gRPC endpoint (e.g., http://localhost:4317);
            console export when empty
        exporter: Explicit exporter, overrides otlp_endpoint

    Returns:
        Configured TracerProvider
    """
    resource = Resource.create(
        {SERVICE_NAME: service_name, SERVICE_VERSION: service_version}
    )
    provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)

    if exporter is None:
        if otlp_endpoint:
            exporter = OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
        else:
            exporter = ConsoleSpanExporter()

    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def get_tracer(name: str, provider: Optional[TracerProvider] = None) -> Tracer:
    """Get a named tracer, from *provider* when given."""
    if provider is not None:
        return provider.get_tracer(name)
    return trace.get_tracer(name)


# =============================================================================
# Current Span Helpers
# =============================================================================


def get_current_trace_id() -> Optional[str]:
    """Get the current trace ID as hex string."""
    span_context = trace.get_current_span().get_span_context()

    if span_context.trace_id == 0:
        return None

    return format(span_context.trace_id, "032x")


def get_current_span_id() -> Optional[str]:
    """Get the current span ID as hex string."""
    span_context = trace.get_current_span().get_span_context()

    if span_context.span_id == 0:
        return None

    return format(span_context.span_id, "016x")


# =============================================================================
# Propagation
# =============================================================================


def inject_trace_context(headers: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Inject the current trace context into headers for outbound requests."""
    carrier = headers if headers is not None else {}
    inject(carrier)
    return carrier


def extract_trace_context(headers: Mapping[str, Any]) -> Context:
    """Extract trace context from incoming headers."""
    return extract(headers)


def _headers_to_dict(headers: list[tuple[bytes, bytes]]) -> dict[str, str]:
    """Convert ASGI headers to dict for propagation."""
    return {
        key.decode("latin-1").lower(): value.decode("latin-1")
        for key, value in headers
    }


# =============================================================================
# Scoped Spans
# =============================================================================


def record_error(span: Span, error: BaseException) -> None:
    """Record *error* on *span* and mark the span as failed."""
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, str(error)))
    if isinstance(error, CepWeatherError):
        span.set_attribute(ATTR_ERROR_CODE, error.error_code)


@contextmanager
def traced_span(
    tracer: Tracer,
    name: str,
    attributes: Optional[dict[str, Any]] = None,
    kind: SpanKind = SpanKind.INTERNAL,
) -> Iterator[Span]:
    """Open *name* as the current span and close it on every exit path.

    Exceptions leaving the block are recorded on the span and re-raised.
    Cancellation (client disconnect) ends the span as an error with
    ``cancelled=true`` instead of leaving it open.

    Args:
        tracer: Tracer to create the span with.
        name: Span name.
        attributes: Initial span attributes.
        kind: Span kind (SERVER for request handlers, CLIENT for calls out).

    Yields:
        The active span.
    """
    with tracer.start_as_current_span(
        name,
        kind=kind,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except asyncio.CancelledError:
            span.set_attribute(ATTR_CANCELLED, True)
            span.set_status(Status(StatusCode.ERROR, "request cancelled"))
            raise
        except Exception as e:
            record_error(span, e)
            raise


# =============================================================================
# ASGI Middleware
# =============================================================================


class TracingMiddleware:
    """
    ASGI middleware that continues the caller's trace.

    Extracts W3C trace context from the request headers and makes it the
    current context while the request is handled, so the handler span
    becomes a child of the caller's span. Requests without trace headers
    start a new trace at the handler span.
    """

    def __init__(
        self,
        app: Callable[..., Any],
        exclude_paths: Optional[list[str]] = None,
    ) -> None:
        self.app = app
        self.exclude_paths = exclude_paths or []

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope.get("path", "/") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        headers_dict = _headers_to_dict(scope.get("headers", []))
        token = otel_context.attach(extract_trace_context(headers_dict))
        try:
            await self.app(scope, receive, send)
        finally:
            otel_context.detach(token)
