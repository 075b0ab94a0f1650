"""Core configuration module for the cep-weather services.

Loads settings from CEP_WEATHER_* prefixed environment variables using
Pydantic Settings. Each service has its own settings class sharing the
common server, logging and tracing fields.

Patterns applied:
- pydantic-settings BaseSettings (Pydantic v2 split)
- env_prefix = "CEP_WEATHER_" for namespace isolation
- AliasChoices for the conventional unprefixed variables
  (OTEL_EXPORTER_OTLP_ENDPOINT, SERVICE_B_URL, WEATHER_API_KEY)
- @field_validator + @classmethod (Pydantic v2 pattern)
- @lru_cache for singleton pattern
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings shared by the input and orchestration services.

    All environment variables must be prefixed with CEP_WEATHER_.
    Example: CEP_WEATHER_PORT=8081, CEP_WEATHER_LOG_LEVEL=DEBUG

    Attributes:
        service_name: Service identifier for logging and span resources.
        service_version: Version reported in /health and span resources.
        port: HTTP port (1-65535). Default: 8080.
        host: Bind address. Default: 0.0.0.0.
        environment: Deployment environment. Default: development.
        log_level: Logging verbosity. Default: INFO.
        otlp_endpoint: OTLP gRPC collector endpoint. Empty disables OTLP export.
        request_timeout_seconds: Timeout applied to every upstream call.
    """

    # =========================================================================
    # Core Settings
    # =========================================================================
    service_name: str = Field(
        default="cep-weather",
        description="Service name for identification",
    )
    service_version: str = Field(
        default="1.0.0",
        description="Service version",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="HTTP server port",
    )
    host: str = Field(
        default="0.0.0.0",
        description="HTTP server bind address",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Tracing
    # =========================================================================
    otlp_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias=AliasChoices(
            "CEP_WEATHER_OTLP_ENDPOINT", "OTEL_EXPORTER_OTLP_ENDPOINT"
        ),
        description="OTLP gRPC collector endpoint (empty = console exporter)",
    )

    # =========================================================================
    # Upstream Calls
    # =========================================================================
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for each upstream HTTP call",
    )

    # =========================================================================
    # Pydantic v2 Model Configuration
    # =========================================================================
    model_config = {
        "env_prefix": "CEP_WEATHER_",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    # =========================================================================
    # Validators (Pydantic v2 pattern: @field_validator + @classmethod)
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Args:
            v: Input log level string.

        Returns:
            Normalized uppercase log level.

        Raises:
            ValueError: If log level is not valid.
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized not in valid_levels:
            msg = f"log_level must be one of {valid_levels}, got '{v}'"
            raise ValueError(msg)
        return normalized


class InputSettings(Settings):
    """Settings for the input service (POST /).

    Attributes:
        orchestration_url: Base URL of the orchestration service.
    """

    service_name: str = Field(
        default="input-service",
        description="Service name for identification",
    )
    orchestration_url: str = Field(
        default="http://localhost:8082",
        validation_alias=AliasChoices(
            "CEP_WEATHER_ORCHESTRATION_URL", "SERVICE_B_URL"
        ),
        description="Base URL of the orchestration service",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for the orchestration call",
    )

    @field_validator("orchestration_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so paths can be joined with '/'."""
        return v.rstrip("/")


class OrchestrationSettings(Settings):
    """Settings for the orchestration service (GET /{cep}).

    Attributes:
        postal_api_url: Base URL of the postal-code registry (ViaCEP).
        weather_api_url: Base URL of the weather provider (WeatherAPI).
        weather_api_key: Credential sent as the ``key`` query parameter.
    """

    service_name: str = Field(
        default="orchestration-service",
        description="Service name for identification",
    )
    postal_api_url: str = Field(
        default="https://viacep.com.br",
        description="Base URL of the postal-code registry",
    )
    weather_api_url: str = Field(
        default="http://api.weatherapi.com",
        description="Base URL of the weather provider",
    )
    weather_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "CEP_WEATHER_WEATHER_API_KEY", "WEATHER_API_KEY"
        ),
        description="Weather provider API key",
    )

    @field_validator("postal_api_url", "weather_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop a trailing slash so paths can be joined with '/'."""
        return v.rstrip("/")


@lru_cache
def get_input_settings() -> InputSettings:
    """Get singleton InputSettings instance.

    Returns:
        Cached InputSettings instance.
    """
    return InputSettings()


@lru_cache
def get_orchestration_settings() -> OrchestrationSettings:
    """Get singleton OrchestrationSettings instance.

    Returns:
        Cached OrchestrationSettings instance.
    """
    return OrchestrationSettings()
