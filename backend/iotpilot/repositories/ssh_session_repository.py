"""SSH session persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.db import SSHSession
from iotpilot.repositories.base import SQLAlchemyRepository


class SSHSessionRepository(SQLAlchemyRepository[SSHSession]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def get_for_device(self, device_pk: int, session_id: str) -> Optional[SSHSession]:
        return (
            self.session.query(SSHSession)
            .filter(SSHSession.device_id == device_pk, SSHSession.id == session_id)
            .first()
        )

    def list_for_device(
        self, device_pk: int, *, active: Optional[bool] = None
    ) -> Sequence[SSHSession]:
        query = self.session.query(SSHSession).filter(SSHSession.device_id == device_pk)
        if active is not None:
            query = query.filter(SSHSession.is_active.is_(active))
        return query.order_by(SSHSession.start_time.desc()).all()
