"""Heartbeat and metric history schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from iotpilot.domain.devices import AppStatus


class HeartbeatRequest(BaseModel):
    """Periodic status report from the device agent."""

    device_id: str = Field(..., min_length=1, max_length=100)
    hostname: str = Field(..., min_length=1, max_length=100)

    # System info
    uptime: Optional[str] = Field(None, max_length=100)
    load_average: Optional[str] = Field(None, max_length=100)
    cpu_usage: Optional[float] = None
    cpu_temperature: Optional[float] = None

    # Memory
    memory_usage_percent: Optional[float] = None
    memory_used_mb: Optional[float] = None
    memory_total_mb: Optional[float] = None

    # Disk
    disk_usage_percent: Optional[float] = None
    disk_used: Optional[str] = Field(None, max_length=50)
    disk_total: Optional[str] = Field(None, max_length=50)

    # Agent
    app_status: AppStatus = AppStatus.UNKNOWN
    agent_version: Optional[str] = Field(None, max_length=50)
    last_boot: Optional[str] = Field(None, max_length=100)

    # Network
    ip_address: Optional[str] = Field(None, max_length=45)
    tailscale_ip: Optional[str] = Field(None, max_length=45)


class HeartbeatResponse(BaseModel):
    success: bool = True
    message: str = "Heartbeat received"
    device_id: str
    status: str


class MetricPoint(BaseModel):
    timestamp: datetime
    value: float
    unit: Optional[str]


class MetricHistoryResponse(BaseModel):
    metrics: dict[str, list[MetricPoint]]
    period: str
    resolution: str
    total_points: int
    processed_points: int
