"""Device persistence helpers."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from iotpilot.db import Alert, Device
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import DeviceFilters, DeviceStatus
from iotpilot.repositories.base import TenantScopedRepository


class DeviceRepository(TenantScopedRepository[Device]):
    """Encapsulates all direct Device ORM access."""

    model = Device

    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def list_filtered(self, filters: DeviceFilters, context: TenantContext) -> Sequence[Device]:
        query = self.scoped(context)
        if filters.status:
            query = query.filter(Device.status == filters.status.value)
        if filters.device_type:
            query = query.filter(Device.device_type == filters.device_type.value)
        if filters.location:
            query = query.filter(Device.location == filters.location)
        return query.order_by(Device.last_seen.desc(), Device.id.desc()).all()

    def get_by_device_id(self, device_id: str, customer_id: int) -> Optional[Device]:
        return (
            self.session.query(Device)
            .filter(Device.customer_id == customer_id, Device.device_id == device_id)
            .first()
        )

    def find_by_device_id(self, device_id: str, context: TenantContext) -> Optional[Device]:
        return self.scoped(context).filter(Device.device_id == device_id).first()

    def get_by_pk(self, pk: int) -> Optional[Device]:
        """Unscoped lookup; callers apply an access policy."""
        return self.session.query(Device).filter(Device.id == pk).first()

    def find_by_hostname(
        self,
        customer_id: int,
        hostname: str,
        *,
        exclude_id: Optional[int] = None,
    ) -> Optional[Device]:
        query = self.session.query(Device).filter(
            Device.customer_id == customer_id,
            func.lower(Device.hostname) == hostname.lower(),
        )
        if exclude_id is not None:
            query = query.filter(Device.id != exclude_id)
        return query.first()

    def status_counts(self, context: TenantContext) -> dict[str, int]:
        rows = (
            self.scoped(context)
            .with_entities(Device.status, func.count(Device.id))
            .group_by(Device.status)
            .all()
        )
        return {status: count for status, count in rows}

    def count(self, context: TenantContext) -> int:
        return self.scoped(context).count()

    def count_recently_online(self, context: TenantContext, since: datetime) -> int:
        return (
            self.scoped(context)
            .filter(Device.status == DeviceStatus.ONLINE.value, Device.last_seen >= since)
            .count()
        )

    def recently_updated(self, context: TenantContext, limit: int = 5) -> Sequence[Device]:
        return self.scoped(context).order_by(Device.updated_at.desc()).limit(limit).all()

    def unresolved_alert_counts(self, device_pks: Sequence[int]) -> dict[int, int]:
        if not device_pks:
            return {}
        rows = (
            self.session.query(Alert.device_id, func.count(Alert.id))
            .filter(Alert.device_id.in_(device_pks), Alert.resolved.is_(False))
            .group_by(Alert.device_id)
            .all()
        )
        return {device_pk: count for device_pk, count in rows}

    def stale_online(self, cutoff: datetime) -> Sequence[Device]:
        """ONLINE devices across all tenants not seen since ``cutoff``."""
        return (
            self.session.query(Device)
            .filter(
                Device.status == DeviceStatus.ONLINE.value,
                (Device.last_seen.is_(None)) | (Device.last_seen < cutoff),
            )
            .all()
        )
