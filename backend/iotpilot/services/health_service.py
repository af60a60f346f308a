"""Service health summary used by the public health endpoint."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Any, Optional

import psutil
import redis as redis_client
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from iotpilot.core.config import settings
from iotpilot.core.logging import get_logger
from iotpilot.core.time import utcnow
from iotpilot.domain.context import TenantContextProvider
from iotpilot.repositories import DeviceRepository
from iotpilot.telemetry import InfluxDBWriter, get_influx_writer

logger = get_logger(__name__)

STARTED_AT = time.monotonic()
ONLINE_WINDOW = timedelta(minutes=5)


def check_redis(url: Optional[str] = None) -> str:
    try:
        client = redis_client.from_url(
            url or settings.redis_url, socket_timeout=2, socket_connect_timeout=2
        )
        client.ping()
        client.close()
    except redis_client.RedisError:
        return "unreachable"
    return "healthy"


class HealthService:
    def __init__(self, session: Session, influx: Optional[InfluxDBWriter] = None) -> None:
        self.session = session
        self.influx = influx or get_influx_writer()
        self.devices = DeviceRepository(session)

    def uptime(self) -> int:
        return int(time.monotonic() - STARTED_AT)

    def device_summary(self) -> dict[str, int]:
        context = TenantContextProvider.create_superadmin_context()
        total = self.devices.count(context)
        online = self.devices.count_recently_online(context, utcnow() - ONLINE_WINDOW)
        return {"total": total, "online": online, "offline": total - online}

    @staticmethod
    def process_memory() -> dict[str, int]:
        info = psutil.Process().memory_info()
        virtual = psutil.virtual_memory()
        return {
            "used": round(info.rss / 1024 / 1024),
            "total": round(virtual.total / 1024 / 1024),
        }

    def report(self) -> tuple[bool, dict[str, Any]]:
        """(healthy, payload) for ``GET /health`` under the API prefix."""
        timestamp = utcnow().isoformat() + "Z"
        try:
            self.session.execute(text("SELECT 1"))
            devices = self.device_summary()
        except SQLAlchemyError as exc:
            logger.error("Health check failed: %s", exc)
            return False, {
                "status": "unhealthy",
                "timestamp": timestamp,
                "error": str(exc),
                "uptime": self.uptime(),
            }

        return True, {
            "status": "healthy",
            "timestamp": timestamp,
            "uptime": self.uptime(),
            "version": settings.api_version,
            "database": "connected",
            "devices": devices,
            "memory": self.process_memory(),
            "services": {
                "influxdb": self.influx.check_health()["status"],
                "redis": check_redis(),
            },
        }
