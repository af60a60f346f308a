"""Schemas for API key operations."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class APIKeyCreate(BaseModel):
    """Schema for creating an API key."""

    name: str = Field(..., min_length=1, max_length=100, description="Descriptive name for the key")
    expires_at: Optional[datetime] = Field(None, description="Optional expiration datetime")


class APIKeyResponse(BaseModel):
    """API key as listed; only the masked key is exposed."""

    id: int
    name: str
    key: str
    expires_at: Optional[datetime]
    last_used_at: Optional[datetime]
    created_at: datetime


class APIKeyCreatedResponse(BaseModel):
    """Newly created API key.

    The ``key`` field is only returned once at creation time.
    """

    id: int
    name: str
    key: str = Field(..., description="The API key. Store securely - shown only once!")
    expires_at: Optional[datetime]
    created_at: datetime
