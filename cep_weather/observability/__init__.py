"""
Observability Package

OpenTelemetry tracing for the cep-weather services. Traces are exported
over OTLP gRPC to the configured collector.
"""

from cep_weather.observability.tracing import (
    TracingMiddleware,
    extract_trace_context,
    get_current_span_id,
    get_current_trace_id,
    get_tracer,
    inject_trace_context,
    setup_tracing,
    traced_span,
)

__all__ = [
    "setup_tracing",
    "TracingMiddleware",
    "get_tracer",
    "get_current_trace_id",
    "get_current_span_id",
    "inject_trace_context",
    "extract_trace_context",
    "traced_span",
]
