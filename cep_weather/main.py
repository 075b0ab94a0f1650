"""FastAPI application factories for the input and orchestration services.

Patterns applied:
- asynccontextmanager lifespan (modern FastAPI pattern, not deprecated @app.on_event)
- configure_logging() called ONCE in lifespan startup
- Collaborators (tracer provider, HTTP client, lookup clients) are built
  once per app and stored on app.state; tests pass substitutes in
- Resources the factory created itself are released on shutdown
- Docs disabled in production
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI
from opentelemetry.sdk.trace import TracerProvider

from cep_weather import __version__
from cep_weather.api.error_handlers import register_exception_handlers
from cep_weather.api.routes.cep_input import router as cep_input_router
from cep_weather.api.routes.health import HEALTH_PATH
from cep_weather.api.routes.health import router as health_router
from cep_weather.api.routes.info import router as info_router
from cep_weather.api.routes.temperature import router as temperature_router
from cep_weather.core.config import (
    InputSettings,
    OrchestrationSettings,
    Settings,
    get_input_settings,
    get_orchestration_settings,
)
from cep_weather.core.logging import configure_logging, get_logger
from cep_weather.observability.tracing import (
    TracingMiddleware,
    get_tracer,
    setup_tracing,
)
from cep_weather.services.orchestration_client import OrchestrationClient
from cep_weather.services.postal_client import PostalLookupClient
from cep_weather.services.temperature_service import (
    PostalLookup,
    TemperatureService,
    WeatherLookup,
)
from cep_weather.services.weather_client import WeatherLookupClient


# =============================================================================
# Application Metadata
# =============================================================================
INPUT_APP_NAME = "input-service"
INPUT_APP_DESCRIPTION = "Receives and validates CEPs, delegates to the orchestration service"
ORCHESTRATION_APP_NAME = "orchestration-service"
ORCHESTRATION_APP_DESCRIPTION = "Resolves a CEP to its city and current temperature"
APP_VERSION = __version__

INPUT_ENDPOINTS = {
    "input": "POST /",
    "info": "GET /",
    "health": "GET /health",
}
ORCHESTRATION_ENDPOINTS = {
    "weather": "GET /{cep}",
    "info": "GET /",
    "health": "GET /health",
}


def _build_app(
    *,
    settings: Settings,
    title: str,
    description: str,
    endpoints: dict[str, str],
    provider: TracerProvider,
    owns_provider: bool,
    http: httpx.AsyncClient,
    owns_http: bool,
    startup_details: Callable[[], dict[str, Any]],
) -> FastAPI:
    """Create the FastAPI app with the lifespan and middleware both services share."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # =====================================================================
        # STARTUP
        # =====================================================================
        configure_logging(level=settings.log_level)  # No-op if already configured
        logger = get_logger(__name__)

        logger.info(
            "Application starting",
            service=settings.service_name,
            version=settings.service_version,
            environment=settings.environment,
            port=settings.port,
            otlp_endpoint=settings.otlp_endpoint or None,
            **startup_details(),
        )
        app.state.initialized = True

        yield

        # =====================================================================
        # SHUTDOWN
        # =====================================================================
        logger.info("Application shutting down", service=settings.service_name)
        if owns_http:
            await http.aclose()
        if owns_provider:
            provider.shutdown()
        app.state.initialized = False

    app = FastAPI(
        title=title,
        description=description,
        version=APP_VERSION,
        docs_url="/docs" if settings.environment != "production" else None,
        redoc_url="/redoc" if settings.environment != "production" else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.service_name = settings.service_name
    app.state.service_version = settings.service_version
    app.state.service_description = description
    app.state.service_endpoints = endpoints
    app.state.tracer_provider = provider
    app.state.http_client = http

    register_exception_handlers(app)
    app.add_middleware(TracingMiddleware, exclude_paths=[HEALTH_PATH])
    return app


def _resolve_collaborators(
    settings: Settings,
    tracer_provider: TracerProvider | None,
    http_client: httpx.AsyncClient | None,
) -> tuple[TracerProvider, bool, httpx.AsyncClient, bool]:
    provider = tracer_provider or setup_tracing(
        service_name=settings.service_name,
        service_version=settings.service_version,
        otlp_endpoint=settings.otlp_endpoint or None,
    )
    http = http_client or httpx.AsyncClient(timeout=settings.request_timeout_seconds)
    return provider, tracer_provider is None, http, http_client is None


# =============================================================================
# Orchestration Service
# =============================================================================
def create_orchestration_app(
    settings: OrchestrationSettings | None = None,
    *,
    tracer_provider: TracerProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
    postal_client: PostalLookup | None = None,
    weather_client: WeatherLookup | None = None,
) -> FastAPI:
    """Create the orchestration service (``GET /{cep}``).

    Args:
        settings: Service settings. Defaults to environment settings.
        tracer_provider: Provider to trace with. Built from settings if None.
        http_client: Shared client for upstream calls. Built if None.
        postal_client: Postal lookup substitute (tests).
        weather_client: Weather lookup substitute (tests).

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_orchestration_settings()
    provider, owns_provider, http, owns_http = _resolve_collaborators(
        settings, tracer_provider, http_client
    )
    tracer = get_tracer("cep_weather.orchestration", provider)

    postal = postal_client or PostalLookupClient(
        http=http,
        tracer=tracer,
        base_url=settings.postal_api_url,
        timeout=settings.request_timeout_seconds,
    )
    weather = weather_client or WeatherLookupClient(
        http=http,
        tracer=tracer,
        api_key=settings.weather_api_key,
        base_url=settings.weather_api_url,
        timeout=settings.request_timeout_seconds,
    )

    def startup_details() -> dict[str, Any]:
        if not settings.weather_api_key:
            get_logger(__name__).warning(
                "Weather API key not configured; weather lookups will fail"
            )
        return {
            "postal_api_url": settings.postal_api_url,
            "weather_api_url": settings.weather_api_url,
            "weather_api_key_configured": bool(settings.weather_api_key),
        }

    app = _build_app(
        settings=settings,
        title=ORCHESTRATION_APP_NAME,
        description=ORCHESTRATION_APP_DESCRIPTION,
        endpoints=ORCHESTRATION_ENDPOINTS,
        provider=provider,
        owns_provider=owns_provider,
        http=http,
        owns_http=owns_http,
        startup_details=startup_details,
    )
    app.state.tracer = tracer
    app.state.temperature_service = TemperatureService(postal=postal, weather=weather)

    # /health and / must be registered before the /{cep} catch-all
    app.include_router(health_router)
    app.include_router(info_router)
    app.include_router(temperature_router)
    return app


# =============================================================================
# Input Service
# =============================================================================
def create_input_app(
    settings: InputSettings | None = None,
    *,
    tracer_provider: TracerProvider | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create the input service (``POST /``).

    Args:
        settings: Service settings. Defaults to environment settings.
        tracer_provider: Provider to trace with. Built from settings if None.
        http_client: Client used to reach the orchestration service. Built if None.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_input_settings()
    provider, owns_provider, http, owns_http = _resolve_collaborators(
        settings, tracer_provider, http_client
    )
    tracer = get_tracer("cep_weather.input", provider)

    app = _build_app(
        settings=settings,
        title=INPUT_APP_NAME,
        description=INPUT_APP_DESCRIPTION,
        endpoints=INPUT_ENDPOINTS,
        provider=provider,
        owns_provider=owns_provider,
        http=http,
        owns_http=owns_http,
        startup_details=lambda: {"orchestration_url": settings.orchestration_url},
    )
    app.state.tracer = tracer
    app.state.orchestration_client = OrchestrationClient(
        http=http,
        tracer=tracer,
        base_url=settings.orchestration_url,
        timeout=settings.request_timeout_seconds,
    )

    app.include_router(health_router)
    app.include_router(info_router)
    app.include_router(cep_input_router)
    return app
