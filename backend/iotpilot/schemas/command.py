"""Device command schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class CommandCreate(BaseModel):
    command: str = Field(..., min_length=1, max_length=20)
    arguments: Optional[dict[str, Any]] = None


class CommandResponse(BaseModel):
    id: int
    device_id: int
    user_id: Optional[int]
    command: str
    arguments: Optional[dict[str, Any]]
    status: str
    output: Optional[str]
    error: Optional[str]
    exit_code: Optional[int]
    created_at: datetime
    executed_at: Optional[datetime]
    completed_at: Optional[datetime]

    model_config = {"from_attributes": True}
