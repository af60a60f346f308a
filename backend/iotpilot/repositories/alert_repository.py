"""Alert persistence helpers."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from iotpilot.db import Alert
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import AlertFilters
from iotpilot.repositories.base import TenantScopedRepository


class AlertRepository(TenantScopedRepository[Alert]):
    model = Alert

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def list_for_device(self, device_pk: int, filters: AlertFilters) -> Sequence[Alert]:
        query = self.session.query(Alert).filter(Alert.device_id == device_pk)
        if filters.severity:
            query = query.filter(Alert.severity == filters.severity.value)
        if filters.alert_type:
            query = query.filter(Alert.type == filters.alert_type.value)
        if filters.status == "active":
            query = query.filter(Alert.resolved.is_(False))
        elif filters.status == "resolved":
            query = query.filter(Alert.resolved.is_(True))
        return query.order_by(Alert.created_at.desc(), Alert.id.desc()).all()

    def get_for_device(self, device_pk: int, alert_id: int) -> Optional[Alert]:
        return (
            self.session.query(Alert)
            .filter(Alert.device_id == device_pk, Alert.id == alert_id)
            .first()
        )

    def unresolved_for_device(self, device_pk: int, limit: int = 10) -> Sequence[Alert]:
        return (
            self.session.query(Alert)
            .filter(Alert.device_id == device_pk, Alert.resolved.is_(False))
            .order_by(Alert.created_at.desc(), Alert.id.desc())
            .limit(limit)
            .all()
        )

    def has_unresolved(self, device_pk: int, alert_type: str) -> bool:
        return (
            self.session.query(Alert.id)
            .filter(
                Alert.device_id == device_pk,
                Alert.type == alert_type,
                Alert.resolved.is_(False),
            )
            .first()
            is not None
        )

    def count(self, context: TenantContext, *, resolved: Optional[bool] = None) -> int:
        query = self.scoped(context)
        if resolved is not None:
            query = query.filter(Alert.resolved.is_(resolved))
        return query.count()

    def severity_counts(self, context: TenantContext) -> dict[str, int]:
        rows = (
            self.scoped(context)
            .with_entities(Alert.severity, func.count(Alert.id))
            .group_by(Alert.severity)
            .all()
        )
        return {severity: count for severity, count in rows}
