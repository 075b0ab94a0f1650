"""pytest configuration and fixtures for cep-weather tests.

Provides in-memory tracing, fake upstream providers (ViaCEP and WeatherAPI
behind an httpx.MockTransport) and app factories wired to both.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import Tracer

from cep_weather.core.config import InputSettings, OrchestrationSettings
from cep_weather.main import create_input_app, create_orchestration_app


# =============================================================================
# Constants
# =============================================================================

POSTAL_API_URL = "https://viacep.test"
WEATHER_API_URL = "http://weatherapi.test"
ORCHESTRATION_URL = "http://orchestration.test"
TEST_API_KEY = "test-key"

CEP_SAO_PAULO = "01310100"
CEP_UNKNOWN = "99999999"

VIACEP_SAO_PAULO: dict[str, Any] = {
    "cep": "01310-100",
    "logradouro": "Avenida Paulista",
    "complemento": "de 612 a 1510 - lado par",
    "bairro": "Bela Vista",
    "localidade": "São Paulo",
    "uf": "SP",
    "ibge": "3550308",
    "gia": "1004",
    "ddd": "11",
    "siafi": "7107",
}
VIACEP_NOT_FOUND: dict[str, Any] = {"erro": True}

WEATHER_SAO_PAULO: dict[str, Any] = {
    "location": {
        "name": "São Paulo",
        "region": "Sao Paulo",
        "country": "Brazil",
        "lat": -23.53,
        "lon": -46.62,
    },
    "current": {
        "temp_c": 25.5,
        "temp_f": 77.9,
        "condition": {"text": "Parcialmente nublado", "code": 1003},
    },
}


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Both services wired in-process")


# =============================================================================
# Tracing Fixtures
# =============================================================================


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """Collects finished spans in memory."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> Generator[TracerProvider, None, None]:
    """TracerProvider exporting synchronously to span_exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    yield provider
    provider.shutdown()


@pytest.fixture
def tracer(tracer_provider: TracerProvider) -> Tracer:
    return tracer_provider.get_tracer("tests")


def spans_by_name(exporter: InMemorySpanExporter) -> dict[str, ReadableSpan]:
    """Index finished spans by name (names are unique per request)."""
    return {span.name: span for span in exporter.get_finished_spans()}


@pytest.fixture
def finished_spans(span_exporter: InMemorySpanExporter):
    """Callable returning the finished spans indexed by name."""
    return lambda: spans_by_name(span_exporter)


# =============================================================================
# Fake Upstream Providers
# =============================================================================


@dataclass
class FakeUpstreams:
    """ViaCEP and WeatherAPI stand-ins behind one MockTransport.

    Set ``*_status``/``*_payload`` to shape responses, or ``*_error`` to an
    httpx exception to simulate a transport failure. Every request seen is
    appended to ``requests``.
    """

    postal_status: int = 200
    postal_payload: Any = field(default_factory=lambda: dict(VIACEP_SAO_PAULO))
    postal_error: Exception | None = None
    weather_status: int = 200
    weather_payload: Any = field(default_factory=lambda: dict(WEATHER_SAO_PAULO))
    weather_error: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.startswith("/ws/"):
            if self.postal_error is not None:
                raise self.postal_error
            return httpx.Response(self.postal_status, json=self.postal_payload)
        if request.url.path == "/v1/current.json":
            if self.weather_error is not None:
                raise self.weather_error
            return httpx.Response(self.weather_status, json=self.weather_payload)
        return httpx.Response(599)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def postal_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/ws/")]

    @property
    def weather_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/v1/current.json"]


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture
def upstream_http(upstreams: FakeUpstreams) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by the fake providers."""
    return httpx.AsyncClient(transport=upstreams.transport)


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def orchestration_settings() -> OrchestrationSettings:
    return OrchestrationSettings(
        postal_api_url=POSTAL_API_URL,
        weather_api_url=WEATHER_API_URL,
        weather_api_key=TEST_API_KEY,
        otlp_endpoint="",
    )


@pytest.fixture
def input_settings() -> InputSettings:
    return InputSettings(orchestration_url=ORCHESTRATION_URL, otlp_endpoint="")


@pytest.fixture
def orchestration_app(
    orchestration_settings: OrchestrationSettings,
    tracer_provider: TracerProvider,
    upstream_http: httpx.AsyncClient,
) -> FastAPI:
    """Orchestration service talking to the fake providers."""
    return create_orchestration_app(
        orchestration_settings,
        tracer_provider=tracer_provider,
        http_client=upstream_http,
    )


@pytest.fixture
def input_app(
    input_settings: InputSettings,
    tracer_provider: TracerProvider,
    orchestration_app: FastAPI,
) -> FastAPI:
    """Input service talking to the in-process orchestration service."""
    http = httpx.AsyncClient(transport=ASGITransport(app=orchestration_app))
    return create_input_app(input_settings, tracer_provider=tracer_provider, http_client=http)


@pytest.fixture
async def orchestration_client(orchestration_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=orchestration_app)
    async with AsyncClient(transport=transport, base_url="http://orchestration.test") as client:
        yield client


@pytest.fixture
async def input_client(input_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=input_app)
    async with AsyncClient(transport=transport, base_url="http://input.test") as client:
        yield client
