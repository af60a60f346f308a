"""Request and response schemas."""

from .alert import AlertAction, AlertCreate, AlertListResponse, AlertResponse
from .api_key import APIKeyCreate, APIKeyCreatedResponse, APIKeyResponse
from .auth import LoginRequest, LoginResponse, MeResponse, RegisterRequest, UserResponse
from .command import CommandCreate, CommandResponse
from .customer import CustomerCreate, CustomerResponse, CustomerStatusChange, CustomerUpdate
from .device import (
    DeviceDetailResponse,
    DeviceListResponse,
    DeviceRegisterRequest,
    DeviceRegistrationResponse,
    DeviceResponse,
    DeviceSettingsResponse,
    DeviceSettingsUpdate,
    DeviceUpdate,
)
from .ssh import SSHCommandRequest, SSHCommandResponse, SSHSessionResponse
from .telemetry import HeartbeatRequest, HeartbeatResponse, MetricHistoryResponse

__all__ = [
    "AlertAction",
    "AlertCreate",
    "AlertListResponse",
    "AlertResponse",
    "APIKeyCreate",
    "APIKeyCreatedResponse",
    "APIKeyResponse",
    "CommandCreate",
    "CommandResponse",
    "CustomerCreate",
    "CustomerResponse",
    "CustomerStatusChange",
    "CustomerUpdate",
    "DeviceDetailResponse",
    "DeviceListResponse",
    "DeviceRegisterRequest",
    "DeviceRegistrationResponse",
    "DeviceResponse",
    "DeviceSettingsResponse",
    "DeviceSettingsUpdate",
    "DeviceUpdate",
    "HeartbeatRequest",
    "HeartbeatResponse",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "MetricHistoryResponse",
    "RegisterRequest",
    "SSHCommandRequest",
    "SSHCommandResponse",
    "SSHSessionResponse",
    "UserResponse",
]
