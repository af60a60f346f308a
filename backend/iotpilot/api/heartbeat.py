"""Agent heartbeat endpoint."""

from fastapi import APIRouter, Depends

from iotpilot.dependencies import get_heartbeat_service, get_tenant_context
from iotpilot.domain.context import TenantContext
from iotpilot.schemas.telemetry import HeartbeatRequest, HeartbeatResponse
from iotpilot.services.heartbeat_service import Heartbeat, HeartbeatService

router = APIRouter(tags=["telemetry"])


@router.post("/heartbeat", response_model=HeartbeatResponse)
def receive_heartbeat(
    payload: HeartbeatRequest,
    service: HeartbeatService = Depends(get_heartbeat_service),
    context: TenantContext = Depends(get_tenant_context),
) -> HeartbeatResponse:
    """Record a status report from a registered device."""
    device = service.process(Heartbeat(**payload.model_dump()), context)
    return HeartbeatResponse(device_id=device.device_id, status=device.status)
