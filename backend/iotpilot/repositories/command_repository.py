"""Device command persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.db import DeviceCommand
from iotpilot.repositories.base import SQLAlchemyRepository


class CommandRepository(SQLAlchemyRepository[DeviceCommand]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_by_id(self, command_id: int) -> Optional[DeviceCommand]:
        return self.session.query(DeviceCommand).filter(DeviceCommand.id == command_id).first()

    def get_for_device(self, device_pk: int, command_id: int) -> Optional[DeviceCommand]:
        return (
            self.session.query(DeviceCommand)
            .filter(DeviceCommand.device_id == device_pk, DeviceCommand.id == command_id)
            .first()
        )

    def recent_for_device(self, device_pk: int, limit: int = 10) -> Sequence[DeviceCommand]:
        return (
            self.session.query(DeviceCommand)
            .filter(DeviceCommand.device_id == device_pk)
            .order_by(DeviceCommand.created_at.desc(), DeviceCommand.id.desc())
            .limit(limit)
            .all()
        )
