"""Device schemas."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from iotpilot.domain.devices import DeviceStatus, HardwareType
from iotpilot.schemas.alert import AlertResponse
from iotpilot.schemas.command import CommandResponse


class DeviceRegisterRequest(BaseModel):
    """Registration payload sent by the device agent."""

    device_id: str = Field(..., min_length=1, max_length=100)
    hostname: str = Field(..., min_length=1, max_length=100)
    device_type: HardwareType = HardwareType.GENERIC
    device_model: Optional[str] = Field(None, max_length=100)
    architecture: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=200)
    ip_address: Optional[str] = Field(None, max_length=45)
    tailscale_ip: Optional[str] = Field(None, max_length=45)
    mac_address: Optional[str] = Field(None, max_length=17)
    auto_registered: bool = False


class DeviceUpdate(BaseModel):
    hostname: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    status: Optional[DeviceStatus] = None


class DeviceResponse(BaseModel):
    id: int
    customer_id: int
    device_id: str
    hostname: str
    device_type: str
    device_model: Optional[str]
    architecture: Optional[str]
    location: Optional[str]
    description: Optional[str]
    ip_address: Optional[str]
    tailscale_ip: Optional[str]
    mac_address: Optional[str]
    status: str
    auto_registered: bool
    uptime: Optional[str]
    load_average: Optional[str]
    cpu_usage: Optional[float]
    cpu_temperature: Optional[float]
    memory_usage_percent: Optional[float]
    memory_used_mb: Optional[float]
    memory_total_mb: Optional[float]
    disk_usage_percent: Optional[float]
    disk_used: Optional[str]
    disk_total: Optional[str]
    app_status: Optional[str]
    agent_version: Optional[str]
    last_boot: Optional[str]
    registered_at: Optional[datetime]
    last_seen: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    alert_count: int = 0

    model_config = {"from_attributes": True}


class DeviceStats(BaseModel):
    total: int = 0
    online: int = 0
    offline: int = 0
    maintenance: int = 0
    error: int = 0


class DeviceListResponse(BaseModel):
    devices: list[DeviceResponse]
    stats: DeviceStats


class DeviceRegistrationResponse(BaseModel):
    device: DeviceResponse
    message: str


class DeviceSettingsUpdate(BaseModel):
    """Writable device settings; unset fields keep their stored value."""

    hostname: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    tags: Optional[list[str]] = None
    heartbeat_interval: Optional[int] = Field(None, ge=30, le=600)
    metrics_enabled: Optional[bool] = None
    cpu_threshold: Optional[int] = Field(None, ge=50, le=100)
    memory_threshold: Optional[int] = Field(None, ge=50, le=100)
    temperature_threshold: Optional[int] = Field(None, ge=40, le=100)
    disk_threshold: Optional[int] = Field(None, ge=70, le=100)
    network_monitoring: Optional[bool] = None
    auto_update: Optional[bool] = None
    update_channel: Optional[Literal["stable", "beta", "nightly"]] = None
    ssh_enabled: Optional[bool] = None
    ssh_username: Optional[str] = Field(None, max_length=100)
    ssh_port: Optional[int] = Field(None, ge=1, le=65535)
    ssh_password: Optional[str] = None
    ssh_private_key: Optional[str] = None
    api_key_rotation_days: Optional[int] = Field(None, ge=7, le=365)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        if v is not None and any(len(tag) > 50 for tag in v):
            raise ValueError("Tags cannot exceed 50 characters")
        return v


class DeviceSettingsResponse(BaseModel):
    hostname: str
    location: Optional[str]
    description: Optional[str]
    tags: list[str]
    heartbeat_interval: int
    metrics_enabled: bool
    cpu_threshold: int
    memory_threshold: int
    temperature_threshold: int
    disk_threshold: int
    network_monitoring: bool
    auto_update: bool
    update_channel: str
    ssh_enabled: bool
    ssh_username: Optional[str]
    ssh_port: int
    api_key_rotation_days: int
    has_ssh_password: bool
    has_ssh_private_key: bool


class DeviceDetailResponse(BaseModel):
    device: DeviceResponse
    metrics: dict[str, Any]
    alerts: list[AlertResponse]
    commands: list[CommandResponse]

