"""Authentication schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Self-service registration request."""

    email: str = Field(..., min_length=3, max_length=255)
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=1)
    customer_id: Optional[int] = None


class LoginRequest(BaseModel):
    """User login request."""

    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)
    remember: bool = False


class UserResponse(BaseModel):
    """User response."""

    id: int
    email: str
    username: str
    role: str
    status: str
    customer_id: Optional[int]
    last_login_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    user: UserResponse
    token: str
    expires_at: datetime


class RegisterResponse(BaseModel):
    user: UserResponse
    message: str


class MeResponse(UserResponse):
    """Current user with tenant-wide counters."""

    device_count: int = 0
    alert_count: int = 0
