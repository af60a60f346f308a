"""Device registration and lifecycle services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.application.bus import EventBus, get_event_bus
from iotpilot.core.logging import TenantLoggerAdapter, get_logger
from iotpilot.core.time import utcnow
from iotpilot.db import Device
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import (
    DEFAULT_DEVICE_SETTINGS,
    AlertSeverity,
    AlertType,
    DeviceFilters,
    DeviceId,
    DeviceStatus,
    HardwareType,
    IpAddress,
    MacAddress,
)
from iotpilot.domain.events import (
    DeviceRegistered,
    DeviceRemoved,
    DeviceStatusChanged,
    DeviceUpdated,
)
from iotpilot.domain.exceptions import ValidationError
from iotpilot.domain.policies import DeviceAccessiblePolicy, DeviceNamingPolicy
from iotpilot.repositories import (
    AlertRepository,
    CommandRepository,
    DeviceRepository,
    MetricRepository,
)
from iotpilot.services.alert_service import AlertService
from iotpilot.services.customer_service import CustomerService

_logger = get_logger(__name__)

REGISTRATION_FIELDS = (
    "hostname",
    "device_type",
    "device_model",
    "architecture",
    "location",
    "ip_address",
    "tailscale_ip",
    "mac_address",
)
EDITABLE_FIELDS = ("hostname", "location", "description", "status")
# settings an explicit null clears; any other null means "keep"
NULLABLE_SETTINGS = ("location", "description", "ssh_username")


@dataclass(slots=True)
class DeviceRegistration:
    device_id: str
    hostname: str
    device_type: HardwareType = HardwareType.GENERIC
    device_model: Optional[str] = None
    architecture: Optional[str] = None
    location: Optional[str] = None
    ip_address: Optional[str] = None
    tailscale_ip: Optional[str] = None
    mac_address: Optional[str] = None
    auto_registered: bool = False

    def validate(self) -> None:
        self.device_id = DeviceId(self.device_id).value
        if not (self.hostname or "").strip():
            raise ValidationError("Hostname is required")
        for address in (self.ip_address, self.tailscale_ip):
            if address:
                IpAddress(address)
        if self.mac_address:
            MacAddress(self.mac_address)


@dataclass(slots=True)
class DeviceListing:
    devices: Sequence[Device]
    alert_counts: dict[int, int]
    stats: dict[str, int]


class DeviceService:
    """Business logic for device lifecycle operations."""

    def __init__(self, session: Session, events: Optional[EventBus] = None) -> None:
        self.session = session
        self.events = events or get_event_bus()
        self.devices = DeviceRepository(session)
        self.alerts = AlertRepository(session)
        self.metrics = MetricRepository(session)
        self.commands = CommandRepository(session)
        self.alert_service = AlertService(session)
        self.customer_service = CustomerService(session, self.events)

    # -------------------------------------------------------------------------
    # Queries

    def list_devices(self, filters: DeviceFilters, context: TenantContext) -> DeviceListing:
        devices = self.devices.list_filtered(filters, context)
        counts = self.devices.status_counts(context)
        stats = {"total": sum(counts.values())}
        for status in DeviceStatus:
            stats[status.value.lower()] = counts.get(status.value, 0)
        alert_counts = self.devices.unresolved_alert_counts([d.id for d in devices])
        return DeviceListing(devices=devices, alert_counts=alert_counts, stats=stats)

    def get_device(self, pk: int, context: TenantContext) -> Device:
        return DeviceAccessiblePolicy(context).check(self.devices.get_by_pk(pk))

    def get_device_detail(self, pk: int, context: TenantContext) -> dict[str, Any]:
        device = self.get_device(pk, context)
        latest = self.metrics.latest_per_metric(device.id)
        return {
            "device": device,
            "alert_count": self.devices.unresolved_alert_counts([device.id]).get(device.id, 0),
            "metrics": {
                name: {"value": row.value, "unit": row.unit, "timestamp": row.timestamp}
                for name, row in latest.items()
            },
            "alerts": self.alerts.unresolved_for_device(device.id, limit=10),
            "commands": self.commands.recent_for_device(device.id, limit=5),
        }

    def get_settings(self, pk: int, context: TenantContext) -> dict[str, Any]:
        return self.settings_view(self.get_device(pk, context))

    # -------------------------------------------------------------------------
    # Mutations

    def register_device(
        self,
        registration: DeviceRegistration,
        context: TenantContext,
        *,
        extra_settings: Optional[dict[str, Any]] = None,
    ) -> tuple[Device, bool]:
        """Create or refresh a device by its agent id; returns (device, created)."""
        registration.validate()
        customer_id = context.customer_id
        if customer_id is None:
            raise ValidationError("A customer must be selected to register devices")
        log = TenantLoggerAdapter(_logger, context)

        now = utcnow()
        device = self.devices.get_by_device_id(registration.device_id, customer_id)
        if device is not None:
            old_status = device.status
            changes = {}
            for field in REGISTRATION_FIELDS:
                value = getattr(registration, field)
                if isinstance(value, HardwareType):
                    value = value.value
                if getattr(device, field) != value:
                    changes[field] = value
                setattr(device, field, value)
            if registration.auto_registered:
                device.auto_registered = True
            if extra_settings:
                device.settings = {**(device.settings or {}), **extra_settings}
            device.status = DeviceStatus.ONLINE.value
            device.last_seen = now
            self.devices.commit()
            self.devices.refresh(device)

            log.info("Device re-registered", extra={"device_id": device.device_id})
            self.events.publish(
                DeviceUpdated(tenant_id=customer_id, device_pk=device.id, changes=changes)
            )
            if old_status != device.status:
                self.events.publish(
                    DeviceStatusChanged(
                        tenant_id=customer_id,
                        device_pk=device.id,
                        old_status=old_status,
                        new_status=device.status,
                    )
                )
            return device, False

        customer = self.customer_service.require_customer(customer_id)
        self.customer_service.ensure_active(customer)
        self.customer_service.ensure_device_quota(customer)

        device = Device(
            customer_id=customer_id,
            device_id=registration.device_id,
            hostname=registration.hostname.strip(),
            device_type=registration.device_type.value,
            device_model=registration.device_model,
            architecture=registration.architecture,
            location=registration.location,
            ip_address=registration.ip_address,
            tailscale_ip=registration.tailscale_ip,
            mac_address=registration.mac_address,
            auto_registered=registration.auto_registered,
            status=DeviceStatus.ONLINE.value,
            settings=dict(extra_settings or {}),
            registered_at=now,
            last_seen=now,
        )
        self.devices.create(device, context)
        self.devices.flush()
        self.alert_service.raise_alert(
            device,
            AlertType.INFO,
            AlertSeverity.INFO,
            "Device Registered",
            f"Device {device.hostname} ({device.device_id}) has been registered successfully.",
            source="registration",
            commit=False,
        )
        self.devices.commit()
        self.devices.refresh(device)

        log.info("Device registered", extra={"device_id": device.device_id})
        self.events.publish(
            DeviceRegistered(
                tenant_id=customer_id,
                device_pk=device.id,
                device_id=device.device_id,
                hostname=device.hostname,
                auto_registered=device.auto_registered,
            )
        )
        return device, True

    def update_device(self, pk: int, changes: dict[str, Any], context: TenantContext) -> Device:
        device = self.get_device(pk, context)
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS}

        if "hostname" in changes and changes["hostname"] != device.hostname:
            policy = DeviceNamingPolicy(
                lambda name: self.devices.find_by_hostname(
                    device.customer_id, name, exclude_id=device.id
                )
                is not None
            )
            changes["hostname"] = policy.check(changes["hostname"])
        if isinstance(changes.get("status"), DeviceStatus):
            changes["status"] = changes["status"].value

        old_status = device.status
        for field, value in changes.items():
            setattr(device, field, value)
        self.devices.commit()
        self.devices.refresh(device)

        if "status" in changes and old_status != device.status:
            self.events.publish(
                DeviceStatusChanged(
                    tenant_id=device.customer_id,
                    device_pk=device.id,
                    old_status=old_status,
                    new_status=device.status,
                )
            )
        else:
            self.events.publish(
                DeviceUpdated(tenant_id=device.customer_id, device_pk=device.id, changes=changes)
            )
        return device

    def delete_device(self, pk: int, context: TenantContext) -> Device:
        device = self.get_device(pk, context)
        self.devices.remove(device)
        self.devices.commit()
        self.events.publish(
            DeviceRemoved(tenant_id=device.customer_id, device_pk=pk, device_id=device.device_id)
        )
        return device

    def update_settings(self, pk: int, values: dict[str, Any], context: TenantContext) -> Device:
        """Apply validated settings; SSH secrets are encrypted and never echoed."""
        device = self.get_device(pk, context)
        values = {k: v for k, v in values.items() if v is not None or k in NULLABLE_SETTINGS}

        password = values.pop("ssh_password", None)
        private_key = values.pop("ssh_private_key", None)
        if password is not None:
            device.ssh_password = password or None
        if private_key is not None:
            device.ssh_private_key = private_key or None

        for field in ("location", "description"):
            if field in values:
                setattr(device, field, values.pop(field))
        if "hostname" in values:
            hostname = values.pop("hostname")
            if hostname and hostname != device.hostname:
                policy = DeviceNamingPolicy(
                    lambda name: self.devices.find_by_hostname(
                        device.customer_id, name, exclude_id=device.id
                    )
                    is not None
                )
                device.hostname = policy.check(hostname)

        current = {**DEFAULT_DEVICE_SETTINGS, **(device.settings or {})}
        current.update({k: v for k, v in values.items() if k in DEFAULT_DEVICE_SETTINGS})
        device.settings = current
        self.devices.commit()
        self.devices.refresh(device)

        self.events.publish(
            DeviceUpdated(
                tenant_id=device.customer_id,
                device_pk=device.id,
                changes={"settings": sorted(values)},
            )
        )
        return device

    def mark_stale_offline(self, offline_after: timedelta) -> list[Device]:
        """Flip ONLINE devices not seen within ``offline_after`` to OFFLINE."""
        stale = self.devices.stale_online(utcnow() - offline_after)
        for device in stale:
            device.status = DeviceStatus.OFFLINE.value
            self.alert_service.raise_alert(
                device,
                AlertType.DEVICE_OFFLINE,
                AlertSeverity.WARNING,
                "Device Offline",
                f"Device {device.hostname} has not reported since {device.last_seen}.",
                source="monitor",
                deduplicate=True,
                commit=False,
            )
        self.devices.commit()

        for device in stale:
            _logger.info(
                "Device marked offline",
                extra={"device_id": device.device_id, "customer_id": device.customer_id},
            )
            self.events.publish(
                DeviceStatusChanged(
                    tenant_id=device.customer_id,
                    device_pk=device.id,
                    old_status=DeviceStatus.ONLINE.value,
                    new_status=DeviceStatus.OFFLINE.value,
                )
            )
        return list(stale)

    # -------------------------------------------------------------------------
    # Helpers

    @staticmethod
    def settings_view(device: Device) -> dict[str, Any]:
        stored = device.settings or {}
        view: dict[str, Any] = {
            "hostname": device.hostname,
            "location": device.location,
            "description": device.description,
        }
        for key, default in DEFAULT_DEVICE_SETTINGS.items():
            value = stored.get(key, default)
            view[key] = default if value is None and key not in NULLABLE_SETTINGS else value
        view["has_ssh_password"] = device._ssh_password is not None
        view["has_ssh_private_key"] = device._ssh_private_key is not None
        return view
