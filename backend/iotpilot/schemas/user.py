"""Admin user management schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from iotpilot.schemas.auth import UserResponse


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class UserApprovalRequest(BaseModel):
    action: Literal["approve", "reject"]
    reason: Optional[str] = Field(None, max_length=500)


class UserApprovalResponse(BaseModel):
    message: str
    user: Optional[UserResponse] = None
