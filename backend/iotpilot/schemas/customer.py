"""Customer schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    settings: Optional[dict[str, Any]] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    settings: Optional[dict[str, Any]] = None


class CustomerStatusChange(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class CustomerResponse(BaseModel):
    id: int
    name: str
    status: str
    settings: Optional[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
