"""Health check API route shared by both services.

``GET /health`` answers 200 ``{"status": "ok"}`` while the process is
serving requests. It is excluded from tracing.
"""

from __future__ import annotations

from fastapi import APIRouter, status
from pydantic import BaseModel, Field


# =============================================================================
# Constants
# =============================================================================

STATUS_OK = "ok"
HEALTH_PATH = "/health"


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for /health liveness endpoint."""

    status: str = Field(
        default=STATUS_OK,
        description="Service health status",
        examples=["ok"],
    )


# =============================================================================
# Router
# =============================================================================

router = APIRouter(tags=["health"])


@router.get(
    HEALTH_PATH,
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    """Liveness probe endpoint.

    Returns:
        HealthResponse with status 'ok'.
    """
    return HealthResponse(status=STATUS_OK)
