"""Health check route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..webhook.webhook_api import envelope_response
from ..webhook.webhook_schemas import SuccessEnvelope
from .health_service import HealthService, HealthStatus

router = APIRouter(prefix="/api", tags=["system"])


def get_health_service(request: Request) -> HealthService:
    return request.app.state.health_service  # type: ignore[attr-defined]


@router.get("/health")
async def health_check(service: HealthService = Depends(get_health_service)) -> JSONResponse:
    """Report service health; ``warning`` still answers 200."""
    report = service.report()
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if report["status"] == HealthStatus.UNHEALTHY.value
        else status.HTTP_200_OK
    )
    return envelope_response(
        SuccessEnvelope(message="Health check completed", data=report),
        status_code,
    )
