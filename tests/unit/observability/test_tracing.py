"""Unit tests for the tracing helpers and middleware."""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind, StatusCode, Tracer

from cep_weather.core.exceptions import WeatherUnavailableError
from cep_weather.observability.tracing import (
    ATTR_CANCELLED,
    ATTR_ERROR_CODE,
    TracingMiddleware,
    extract_trace_context,
    get_current_span_id,
    get_current_trace_id,
    inject_trace_context,
    setup_tracing,
    traced_span,
)

TRACEPARENT = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
REMOTE_TRACE_ID = 0x4BF92F3577B34DA6A3CE929D0E0E4736
REMOTE_SPAN_ID = 0x00F067AA0BA902B7


class TestSetupTracing:
    def test_resource_carries_service_identity(self, span_exporter: InMemorySpanExporter) -> None:
        provider = setup_tracing("orchestration-service", "2.0.0", exporter=span_exporter)

        attributes = provider.resource.attributes
        assert attributes[SERVICE_NAME] == "orchestration-service"
        assert attributes[SERVICE_VERSION] == "2.0.0"
        provider.shutdown()

    def test_spans_are_batched_to_exporter(self, span_exporter: InMemorySpanExporter) -> None:
        provider = setup_tracing("svc", exporter=span_exporter)

        with provider.get_tracer("t").start_as_current_span("op"):
            pass
        provider.force_flush()

        assert [s.name for s in span_exporter.get_finished_spans()] == ["op"]
        provider.shutdown()

    def test_console_exporter_without_endpoint(self) -> None:
        provider = setup_tracing("svc", otlp_endpoint=None)

        assert isinstance(provider, TracerProvider)
        provider.shutdown()


class TestCurrentIds:
    def test_none_outside_span(self) -> None:
        assert get_current_trace_id() is None
        assert get_current_span_id() is None

    def test_hex_inside_span(self, tracer: Tracer) -> None:
        with tracer.start_as_current_span("op") as span:
            context = span.get_span_context()
            assert get_current_trace_id() == format(context.trace_id, "032x")
            assert get_current_span_id() == format(context.span_id, "016x")


class TestPropagation:
    def test_inject_writes_traceparent(self, tracer: Tracer) -> None:
        with tracer.start_as_current_span("op") as span:
            headers = inject_trace_context()
            context = span.get_span_context()

        version, trace_id, span_id, flags = headers["traceparent"].split("-")
        assert version == "00"
        assert trace_id == format(context.trace_id, "032x")
        assert span_id == format(context.span_id, "016x")
        assert int(flags, 16) & 0x01  # sampled

    def test_inject_into_existing_headers(self, tracer: Tracer) -> None:
        headers = {"accept": "application/json"}
        with tracer.start_as_current_span("op"):
            result = inject_trace_context(headers)

        assert result is headers
        assert "traceparent" in headers

    def test_extract_continues_remote_trace(self, tracer: Tracer) -> None:
        parent = extract_trace_context({"traceparent": TRACEPARENT})

        with tracer.start_as_current_span("child", context=parent) as span:
            context = span.get_span_context()

        assert context.trace_id == REMOTE_TRACE_ID
        assert span.parent is not None
        assert span.parent.span_id == REMOTE_SPAN_ID
        assert span.parent.is_remote


class TestTracedSpan:
    def test_ends_span_on_success(
        self, tracer: Tracer, span_exporter: InMemorySpanExporter
    ) -> None:
        with traced_span(tracer, "op", {"cep": "01310100"}, kind=SpanKind.CLIENT):
            pass

        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["cep"] == "01310100"
        assert span.kind is SpanKind.CLIENT
        assert span.status.status_code is StatusCode.UNSET

    def test_records_error_and_reraises(
        self, tracer: Tracer, span_exporter: InMemorySpanExporter
    ) -> None:
        with pytest.raises(WeatherUnavailableError):
            with traced_span(tracer, "op"):
                raise WeatherUnavailableError("provider returned status 503")

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code is StatusCode.ERROR
        assert span.attributes[ATTR_ERROR_CODE] == "WEATHER_UNAVAILABLE"
        assert [event.name for event in span.events] == ["exception"]

    async def test_marks_cancellation(
        self, tracer: Tracer, span_exporter: InMemorySpanExporter
    ) -> None:
        started = asyncio.Event()

        async def work() -> None:
            with traced_span(tracer, "slow"):
                started.set()
                await asyncio.Event().wait()

        task = asyncio.ensure_future(work())
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        (span,) = span_exporter.get_finished_spans()
        assert span.attributes[ATTR_CANCELLED] is True
        assert span.status.status_code is StatusCode.ERROR
        assert span.end_time is not None

    def test_nested_spans_link_parent(
        self, tracer: Tracer, span_exporter: InMemorySpanExporter
    ) -> None:
        with traced_span(tracer, "parent"):
            with traced_span(tracer, "child"):
                pass

        child, parent = span_exporter.get_finished_spans()
        assert child.parent is not None
        assert child.parent.span_id == parent.context.span_id
        assert child.context.trace_id == parent.context.trace_id


class TestTracingMiddleware:
    @pytest.fixture
    def app(self, tracer: Tracer) -> FastAPI:
        app = FastAPI()

        @app.get("/work")
        async def work() -> dict[str, str | None]:
            with traced_span(tracer, "handler"):
                return {"trace_id": get_current_trace_id()}

        @app.get("/health")
        async def health() -> dict[str, str | None]:
            return {"trace_id": get_current_trace_id()}

        app.add_middleware(TracingMiddleware, exclude_paths=["/health"])
        return app

    def test_continues_incoming_trace(
        self, app: FastAPI, span_exporter: InMemorySpanExporter
    ) -> None:
        response = TestClient(app).get("/work", headers={"traceparent": TRACEPARENT})

        assert response.json()["trace_id"] == format(REMOTE_TRACE_ID, "032x")
        (span,) = span_exporter.get_finished_spans()
        assert span.parent is not None
        assert span.parent.span_id == REMOTE_SPAN_ID

    def test_starts_new_trace_without_headers(
        self, app: FastAPI, span_exporter: InMemorySpanExporter
    ) -> None:
        TestClient(app).get("/work")

        (span,) = span_exporter.get_finished_spans()
        assert span.parent is None

    def test_excluded_paths_untouched(self, app: FastAPI) -> None:
        response = TestClient(app).get("/health", headers={"traceparent": TRACEPARENT})

        assert response.json()["trace_id"] is None
