"""Application health summary endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from iotpilot.dependencies import get_health_service
from iotpilot.services.health_service import HealthService

router = APIRouter(tags=["health"])


@router.get("/health")
def health(service: HealthService = Depends(get_health_service)):
    """Database, device, memory and service status; 503 when unhealthy."""
    healthy, payload = service.report()
    if healthy:
        return payload
    return JSONResponse(status_code=503, content=payload)
