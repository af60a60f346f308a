"""Host and database overview for admins."""

from __future__ import annotations

import os
import platform
import socket
import time
from typing import Any

import psutil
from sqlalchemy.orm import Session

from iotpilot.core.config import settings
from iotpilot.domain.context import TenantContext
from iotpilot.repositories import (
    AlertRepository,
    CustomerRepository,
    DeviceRepository,
    UserRepository,
)


class SystemService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.devices = DeviceRepository(session)
        self.alerts = AlertRepository(session)
        self.customers = CustomerRepository(session)

    def host_metrics(self) -> dict[str, Any]:
        memory = psutil.virtual_memory()
        return {
            "cpu": {
                "cores": psutil.cpu_count() or 0,
                "model": platform.processor() or platform.machine(),
                "load_avg": list(os.getloadavg()) if hasattr(os, "getloadavg") else [],
                "utilization": psutil.cpu_percent(interval=None),
            },
            "memory": {
                "total": memory.total,
                "free": memory.available,
                "used": memory.total - memory.available,
                "used_percentage": round(memory.percent),
            },
            "uptime": int(time.time() - psutil.boot_time()),
            "platform": platform.system().lower(),
            "hostname": socket.gethostname(),
        }

    def database_metrics(self, context: TenantContext) -> dict[str, Any]:
        counts = {
            "users": self.users.count(context),
            "devices": self.devices.count(context),
            "alerts": self.alerts.count(context),
        }
        if context.is_superadmin:
            counts["customers"] = self.customers.count_all()
        recent = [
            {"id": device.id, "hostname": device.hostname, "updated_at": device.updated_at}
            for device in self.devices.recently_updated(context, limit=5)
        ]
        return {"counts": counts, "recent_activity": recent, "status": "healthy"}

    def application_metrics(self, context: TenantContext) -> dict[str, Any]:
        return {
            "status": "healthy",
            "version": settings.api_version,
            "environment": settings.environment,
            "devices_by_status": self.devices.status_counts(context),
            "alerts": {
                "active": self.alerts.count(context, resolved=False),
                "resolved": self.alerts.count(context, resolved=True),
                "by_severity": self.alerts.severity_counts(context),
            },
        }

    def overview(self, context: TenantContext) -> dict[str, Any]:
        return {
            "system": self.host_metrics(),
            "database": self.database_metrics(context),
            "application": self.application_metrics(context),
        }
