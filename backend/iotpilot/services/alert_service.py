"""Device alert lifecycle."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.core.logging import get_logger
from iotpilot.core.metrics import record_alert
from iotpilot.core.time import utcnow
from iotpilot.db import Alert, Device, User
from iotpilot.domain.devices import AlertFilters, AlertSeverity, AlertType
from iotpilot.domain.exceptions import BadRequestError, NotFoundError
from iotpilot.repositories import AlertRepository

logger = get_logger(__name__)

ALERT_ACTIONS = ("acknowledge", "resolve", "update")


class AlertService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.alerts = AlertRepository(session)

    # -------------------------------------------------------------------------
    # Queries

    def list_alerts(
        self, device: Device, filters: AlertFilters
    ) -> tuple[Sequence[Alert], dict[str, Any]]:
        alerts = self.alerts.list_for_device(device.id, filters)
        return alerts, self.stats(device)

    def stats(self, device: Device) -> dict[str, Any]:
        everything = self.alerts.list_for_device(device.id, AlertFilters())
        by_severity = {severity.value: 0 for severity in AlertSeverity}
        for alert in everything:
            by_severity[alert.severity] = by_severity.get(alert.severity, 0) + 1
        active = [a for a in everything if not a.resolved]
        return {
            "total": len(everything),
            "active": len(active),
            "resolved": len(everything) - len(active),
            "critical": sum(1 for a in active if a.severity == AlertSeverity.CRITICAL.value),
            "by_severity": by_severity,
        }

    def get_alert(self, device: Device, alert_id: int) -> Alert:
        alert = self.alerts.get_for_device(device.id, alert_id)
        if not alert:
            raise NotFoundError("Alert not found")
        return alert

    # -------------------------------------------------------------------------
    # Mutations

    def raise_alert(
        self,
        device: Device,
        alert_type: AlertType,
        severity: AlertSeverity,
        title: str,
        message: str,
        *,
        source: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        deduplicate: bool = False,
        commit: bool = True,
    ) -> Optional[Alert]:
        """Create an alert; with ``deduplicate`` nothing is raised while one of
        the same type is still unresolved for the device."""
        if deduplicate and self.alerts.has_unresolved(device.id, alert_type.value):
            return None
        alert = Alert(
            device_id=device.id,
            customer_id=device.customer_id,
            type=alert_type.value,
            severity=severity.value,
            title=title,
            message=message,
            source=source,
            details=details,
        )
        self.alerts.add(alert)
        if commit:
            self.alerts.commit()
            self.alerts.refresh(alert)
        else:
            self.alerts.flush()
        record_alert(alert_type.value, severity.value)
        logger.info(
            "Alert raised",
            extra={
                "device_id": device.device_id,
                "customer_id": device.customer_id,
                "alert_type": alert_type.value,
                "severity": severity.value,
            },
        )
        return alert

    def apply_action(
        self,
        device: Device,
        alert_id: int,
        action: str,
        payload: dict[str, Any],
        user: Optional[User] = None,
    ) -> Alert:
        alert = self.get_alert(device, alert_id)
        if action == "acknowledge":
            if alert.resolved:
                raise BadRequestError("Cannot acknowledge a resolved alert")
            alert.acknowledged_at = utcnow()
        elif action == "resolve":
            if alert.resolved:
                raise BadRequestError("Alert is already resolved")
            alert.resolved = True
            alert.resolved_at = utcnow()
            alert.resolved_by = payload.get("resolved_by") or (user.email if user else "system")
            alert.resolve_note = payload.get("note") or ""
        elif action == "update":
            if payload.get("severity"):
                alert.severity = AlertSeverity(payload["severity"]).value
            if payload.get("title"):
                alert.title = payload["title"]
            if payload.get("message"):
                alert.message = payload["message"]
            if payload.get("metadata"):
                alert.details = {**(alert.details or {}), **payload["metadata"]}
        else:
            raise BadRequestError(
                "Invalid action. Supported actions: acknowledge, resolve, update"
            )
        self.alerts.commit()
        self.alerts.refresh(alert)
        return alert

    def delete_alert(self, device: Device, alert_id: int) -> None:
        alert = self.get_alert(device, alert_id)
        self.alerts.remove(alert)
        self.alerts.commit()
