"""SSH session schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class SSHSessionResponse(BaseModel):
    id: str
    device_id: int
    user_id: Optional[int]
    ip_address: str
    username: str
    port: int
    start_time: datetime
    end_time: Optional[datetime]
    is_active: bool
    commands: list[str]
    command_log: list[dict[str, Any]]

    model_config = {"from_attributes": True}


class SSHCommandRequest(BaseModel):
    command: str = Field(..., min_length=1, max_length=4096)


class SSHCommandResponse(BaseModel):
    command: str
    stdout: str
    stderr: str
    exit_status: int
