"""Heartbeat ingestion: device state, metric samples and threshold alerts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from iotpilot.application.bus import EventBus, get_event_bus
from iotpilot.core.logging import TenantLoggerAdapter, get_logger
from iotpilot.core.metrics import record_heartbeat
from iotpilot.core.time import utcnow
from iotpilot.db import Device, DeviceMetric
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import (
    AlertSeverity,
    AlertType,
    AppStatus,
    DeviceMetrics,
    DeviceStatus,
    IpAddress,
)
from iotpilot.domain.events import DeviceStatusChanged, MetricsCollected
from iotpilot.domain.exceptions import DeviceNotFound, InvalidDeviceData
from iotpilot.domain.policies import MetricCollectionPolicy
from iotpilot.repositories import DeviceRepository, MetricRepository
from iotpilot.services.alert_service import AlertService
from iotpilot.telemetry import InfluxDBWriter, get_influx_writer

_logger = get_logger(__name__)

SYSTEM_FIELDS = (
    "uptime",
    "load_average",
    "cpu_usage",
    "cpu_temperature",
    "memory_usage_percent",
    "memory_used_mb",
    "memory_total_mb",
    "disk_usage_percent",
    "disk_used",
    "disk_total",
    "agent_version",
    "last_boot",
)

# payload field -> (stored metric name, unit)
METRIC_SAMPLES = {
    "cpu_usage": ("cpu_usage", "%"),
    "cpu_temperature": ("cpu_temperature", "°C"),
    "memory_usage_percent": ("memory_usage", "%"),
    "disk_usage_percent": ("disk_usage", "%"),
}


@dataclass(frozen=True, slots=True)
class Threshold:
    field: str
    alert_type: AlertType
    title: str
    message: str
    warning_above: float
    critical_above: float


THRESHOLDS = (
    Threshold("cpu_usage", AlertType.HIGH_CPU, "High CPU Usage", "CPU usage is {}%", 85, 95),
    Threshold(
        "memory_usage_percent",
        AlertType.HIGH_MEMORY,
        "High Memory Usage",
        "Memory usage is {}%",
        85,
        95,
    ),
    Threshold(
        "cpu_temperature",
        AlertType.HIGH_TEMPERATURE,
        "High Temperature",
        "CPU temperature is {}°C",
        70,
        80,
    ),
    Threshold(
        "disk_usage_percent",
        AlertType.LOW_DISK_SPACE,
        "Low Disk Space",
        "Disk usage is {}%",
        85,
        95,
    ),
)


@dataclass(slots=True)
class Heartbeat:
    device_id: str
    hostname: str
    uptime: Optional[str] = None
    load_average: Optional[str] = None
    cpu_usage: Optional[float] = None
    cpu_temperature: Optional[float] = None
    memory_usage_percent: Optional[float] = None
    memory_used_mb: Optional[float] = None
    memory_total_mb: Optional[float] = None
    disk_usage_percent: Optional[float] = None
    disk_used: Optional[str] = None
    disk_total: Optional[str] = None
    app_status: AppStatus = AppStatus.UNKNOWN
    agent_version: Optional[str] = None
    last_boot: Optional[str] = None
    ip_address: Optional[str] = None
    tailscale_ip: Optional[str] = None

    def metrics(self) -> DeviceMetrics:
        return DeviceMetrics(
            cpu_usage=self.cpu_usage,
            memory_usage=self.memory_usage_percent,
            disk_usage=self.disk_usage_percent,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class HeartbeatService:
    def __init__(
        self,
        session: Session,
        events: Optional[EventBus] = None,
        influx: Optional[InfluxDBWriter] = None,
    ) -> None:
        self.session = session
        self.events = events or get_event_bus()
        self.influx = influx or get_influx_writer()
        self.devices = DeviceRepository(session)
        self.metrics = MetricRepository(session)
        self.alert_service = AlertService(session)

    def process(self, heartbeat: Heartbeat, context: TenantContext) -> Device:
        """Record a heartbeat for a registered device and return it."""
        device = self.devices.find_by_device_id(heartbeat.device_id, context)
        if device is None:
            raise DeviceNotFound(message="Device not found. Please register the device first.")
        for address in (heartbeat.ip_address, heartbeat.tailscale_ip):
            if address:
                IpAddress(address)
        log = TenantLoggerAdapter(_logger, context)

        now = utcnow()
        old_status = device.status
        device.hostname = heartbeat.hostname
        for field in SYSTEM_FIELDS:
            setattr(device, field, getattr(heartbeat, field))
        device.app_status = heartbeat.app_status.value
        if heartbeat.ip_address:
            device.ip_address = heartbeat.ip_address
        if heartbeat.tailscale_ip:
            device.tailscale_ip = heartbeat.tailscale_ip
        device.status = DeviceStatus.ONLINE.value
        device.last_seen = now

        try:
            collected = MetricCollectionPolicy().check(device, heartbeat.metrics())
        except InvalidDeviceData:
            self.session.rollback()
            raise
        samples = self._samples(device, heartbeat, now)
        self.metrics.add_many(samples)
        self.devices.flush()
        self._check_thresholds(device, heartbeat)
        self.devices.commit()
        self.devices.refresh(device)

        log.debug("Heartbeat received", extra={"device_id": device.device_id})
        if old_status != device.status:
            self.events.publish(
                DeviceStatusChanged(
                    tenant_id=device.customer_id,
                    device_pk=device.id,
                    old_status=old_status,
                    new_status=device.status,
                )
            )
        self.events.publish(
            MetricsCollected(
                tenant_id=device.customer_id,
                device_pk=device.id,
                metrics={**collected.as_dict(), **{s.metric: s.value for s in samples}},
            )
        )

        self.influx.send(device.device_id, heartbeat.to_dict(), now)
        record_heartbeat(device.app_status)
        return device

    # -------------------------------------------------------------------------
    # Helpers

    @staticmethod
    def _samples(device: Device, heartbeat: Heartbeat, now) -> list[DeviceMetric]:
        samples = []
        for field, (metric, unit) in METRIC_SAMPLES.items():
            value = getattr(heartbeat, field)
            if value is None:
                continue
            samples.append(
                DeviceMetric(
                    device_id=device.id,
                    customer_id=device.customer_id,
                    metric=metric,
                    value=float(value),
                    unit=unit,
                    timestamp=now,
                )
            )
        return samples

    def _check_thresholds(self, device: Device, heartbeat: Heartbeat) -> None:
        for threshold in THRESHOLDS:
            value = getattr(heartbeat, threshold.field)
            if value is None or value <= threshold.warning_above:
                continue
            severity = (
                AlertSeverity.CRITICAL
                if value > threshold.critical_above
                else AlertSeverity.WARNING
            )
            self.alert_service.raise_alert(
                device,
                threshold.alert_type,
                severity,
                threshold.title,
                threshold.message.format(value),
                source="heartbeat",
                details={"value": value, "threshold": threshold.warning_above},
                deduplicate=True,
                commit=False,
            )

        if heartbeat.app_status == AppStatus.ERROR:
            self.alert_service.raise_alert(
                device,
                AlertType.APPLICATION_ERROR,
                AlertSeverity.ERROR,
                "Application Error",
                "Device application is in error state",
                source="heartbeat",
                deduplicate=True,
                commit=False,
            )
