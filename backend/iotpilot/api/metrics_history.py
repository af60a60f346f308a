"""Device metric history endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from iotpilot.dependencies import get_device_service, get_metric_service, get_tenant_context
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import MetricWindow
from iotpilot.schemas.telemetry import MetricHistoryResponse
from iotpilot.services.device_service import DeviceService
from iotpilot.services.metric_service import MetricService

router = APIRouter(prefix="/devices/{device_pk}/metrics", tags=["metrics"])


@router.get("", response_model=MetricHistoryResponse)
def get_metric_history(
    device_pk: int,
    metric: Optional[str] = Query(default="all"),
    period: str = Query(default="24h"),
    resolution: str = Query(default="auto"),
    devices: DeviceService = Depends(get_device_service),
    service: MetricService = Depends(get_metric_service),
    context: TenantContext = Depends(get_tenant_context),
) -> MetricHistoryResponse:
    """Stored samples for ``metric`` (``all`` or a comma separated list)."""
    device = devices.get_device(device_pk, context)
    names = None
    if metric and metric != "all":
        names = [name.strip() for name in metric.split(",") if name.strip()] or None
    window = MetricWindow(metrics=names, period=period, resolution=resolution)
    return MetricHistoryResponse(**service.history(device, window))
