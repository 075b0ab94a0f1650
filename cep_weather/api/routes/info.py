"""Service information route shared by both services.

``GET /`` describes the running service and the endpoints it serves.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

INFO_PATH = "/"


class ServiceInfoResponse(BaseModel):
    """Response model for the service information endpoint."""

    service: str = Field(description="Service name", examples=["orchestration-service"])
    version: str = Field(description="Service version", examples=["1.0.0"])
    description: str = Field(
        default="",
        description="What the service does",
        examples=["Resolves a CEP to its city and current temperature"],
    )
    endpoints: dict[str, str] = Field(
        default_factory=dict,
        description="Endpoint name to method and path",
        examples=[{"weather": "GET /{cep}", "health": "GET /health"}],
    )


router = APIRouter(tags=["info"])


@router.get(
    INFO_PATH,
    response_model=ServiceInfoResponse,
    status_code=status.HTTP_200_OK,
    summary="Service information",
)
async def service_info(request: Request) -> ServiceInfoResponse:
    state = request.app.state
    return ServiceInfoResponse(
        service=state.service_name,
        version=state.service_version,
        description=state.service_description,
        endpoints=state.service_endpoints,
    )
