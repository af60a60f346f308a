"""Database models."""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from iotpilot.core.crypto import decrypt_text, encrypt_text
from iotpilot.core.time import utcnow
from iotpilot.domain.devices import CommandStatus


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Customer(Base):
    """Customer (tenant) model."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")
    settings: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    users: Mapped[list["User"]] = relationship("User", back_populates="customer")
    devices: Mapped[list["Device"]] = relationship("Device", back_populates="customer")


class User(Base):
    """User model. SUPERADMIN rows have no customer."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_customer_id", "customer_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="USER"
    )  # READONLY, USER, ADMIN, SUPERADMIN
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    customer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=True
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    customer: Mapped[Optional["Customer"]] = relationship("Customer", back_populates="users")
    sessions: Mapped[list["Session"]] = relationship("Session", back_populates="user")
    api_keys: Mapped[list["APIKey"]] = relationship("APIKey", back_populates="user")

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE" and self.deleted_at is None


class Session(Base):
    """Login session bound to an issued JWT."""

    __tablename__ = "sessions"
    __table_args__ = (Index("ix_sessions_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    token: Mapped[str] = mapped_column(String(1024), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="sessions")

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= utcnow()

    @property
    def is_valid(self) -> bool:
        return self.revoked_at is None and not self.is_expired

    def revoke(self) -> None:
        if self.revoked_at is None:
            self.revoked_at = utcnow()


class APIKey(Base):
    """API key for device agents and scripts. Only the SHA-256 digest is stored."""

    __tablename__ = "api_keys"
    __table_args__ = (
        Index("ix_api_keys_user_id", "user_id"),
        Index("ix_api_keys_key_hash", "key_hash"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    customer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    key_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    key_suffix: Mapped[str] = mapped_column(String(4), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="api_keys")

    @property
    def is_usable(self) -> bool:
        if self.deleted_at is not None:
            return False
        return self.expires_at is None or self.expires_at > utcnow()


class Device(Base):
    """Managed IoT endpoint. ``device_id`` is the agent-supplied identifier."""

    __tablename__ = "devices"
    __table_args__ = (
        Index("ix_devices_customer_id", "customer_id"),
        Index("ix_devices_status", "status"),
        UniqueConstraint("customer_id", "device_id", name="uix_device_customer_device_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id"), nullable=False)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False)
    hostname: Mapped[str] = mapped_column(String(100), nullable=False)
    device_type: Mapped[str] = mapped_column(String(20), nullable=False, default="GENERIC")
    device_model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    architecture: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    tailscale_ip: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    mac_address: Mapped[Optional[str]] = mapped_column(String(17), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OFFLINE")
    auto_registered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Last reported system state
    uptime: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    load_average: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cpu_usage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cpu_temperature: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    memory_usage_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    memory_used_mb: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    memory_total_mb: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    disk_usage_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    disk_used: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    disk_total: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    app_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    agent_version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_boot: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    settings: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    _ssh_password: Mapped[Optional[str]] = mapped_column("ssh_password", Text, nullable=True)
    _ssh_private_key: Mapped[Optional[str]] = mapped_column(
        "ssh_private_key", Text, nullable=True
    )

    registered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    customer: Mapped["Customer"] = relationship("Customer", back_populates="devices")
    metrics: Mapped[list["DeviceMetric"]] = relationship(
        "DeviceMetric", back_populates="device", cascade="all, delete-orphan"
    )
    alerts: Mapped[list["Alert"]] = relationship(
        "Alert", back_populates="device", cascade="all, delete-orphan"
    )
    commands: Mapped[list["DeviceCommand"]] = relationship(
        "DeviceCommand", back_populates="device", cascade="all, delete-orphan"
    )
    ssh_sessions: Mapped[list["SSHSession"]] = relationship(
        "SSHSession", back_populates="device", cascade="all, delete-orphan"
    )

    @property
    def ssh_password(self) -> Optional[str]:
        return decrypt_text(self._ssh_password)

    @ssh_password.setter
    def ssh_password(self, value: Optional[str]) -> None:
        self._ssh_password = encrypt_text(value)

    @property
    def ssh_private_key(self) -> Optional[str]:
        return decrypt_text(self._ssh_private_key)

    @ssh_private_key.setter
    def ssh_private_key(self, value: Optional[str]) -> None:
        self._ssh_private_key = encrypt_text(value)

    @property
    def ssh_host(self) -> Optional[str]:
        return self.tailscale_ip or self.ip_address


class DeviceMetric(Base):
    """Single metric sample stored for history queries."""

    __tablename__ = "device_metrics"
    __table_args__ = (Index("ix_device_metrics_device_ts", "device_id", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    device_id: Mapped[int] = mapped_column(Integer, ForeignKey("devices.id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id"), nullable=False)
    metric: Mapped[str] = mapped_column(String(50), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    device: Mapped["Device"] = relationship("Device", back_populates="metrics")


class Alert(Base):
    """Alert raised for a device."""

    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_device_id", "device_id"),
        Index("ix_alerts_customer_id", "customer_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    device_id: Mapped[int] = mapped_column(Integer, ForeignKey("devices.id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False, default="INFO")
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    source: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    resolve_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    details: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    device: Mapped["Device"] = relationship("Device", back_populates="alerts")


class DeviceCommand(Base):
    """Remote command queued for, or executed on, a device."""

    __tablename__ = "device_commands"
    __table_args__ = (Index("ix_device_commands_device_id", "device_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    device_id: Mapped[int] = mapped_column(Integer, ForeignKey("devices.id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id"), nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    command: Mapped[str] = mapped_column(String(20), nullable=False)
    arguments: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CommandStatus.PENDING.value
    )
    output: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    exit_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    executed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    device: Mapped["Device"] = relationship("Device", back_populates="commands")

    def mark_executing(self) -> None:
        self.status = CommandStatus.EXECUTING.value
        self.executed_at = utcnow()

    def mark_completed(self, output: Optional[str] = None) -> None:
        self.status = CommandStatus.COMPLETED.value
        self.output = output
        self.completed_at = utcnow()

    def mark_failed(self, error: Optional[str] = None) -> None:
        self.status = CommandStatus.FAILED.value
        self.error = error
        self.completed_at = utcnow()

    def mark_timeout(self, error: Optional[str] = None) -> None:
        self.status = CommandStatus.TIMEOUT.value
        self.error = error
        self.completed_at = utcnow()

    @property
    def is_finished(self) -> bool:
        return self.status in (
            CommandStatus.COMPLETED.value,
            CommandStatus.FAILED.value,
            CommandStatus.TIMEOUT.value,
        )


class SSHSession(Base):
    """Tracked interactive SSH session against a device."""

    __tablename__ = "ssh_sessions"
    __table_args__ = (Index("ix_ssh_sessions_device_id", "device_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    device_id: Mapped[int] = mapped_column(Integer, ForeignKey("devices.id"), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id"), nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    port: Mapped[int] = mapped_column(Integer, nullable=False, default=22)
    start_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    command_log: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    device: Mapped["Device"] = relationship("Device", back_populates="ssh_sessions")

    @property
    def commands(self) -> list[str]:
        return [entry["command"] for entry in self.command_log or []]

    def add_command(self, command: str, exit_status: Optional[int] = None) -> None:
        if not self.is_active:
            raise ValueError("Cannot add command to a closed session")
        entry: dict[str, Any] = {
            "command": command,
            "exit_status": exit_status,
            "executed_at": utcnow().isoformat(),
        }
        # Reassign so the JSON column is flagged dirty
        self.command_log = [*(self.command_log or []), entry]

    def close_session(self) -> None:
        if not self.is_active:
            return
        self.is_active = False
        self.end_time = utcnow()


class UserPreference(Base):
    """Key/value preference grouped by category."""

    __tablename__ = "user_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "category", "key", name="uix_user_pref_category_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


class SystemConfig(Base):
    """Tenant-wide configuration values editable by admins."""

    __tablename__ = "system_configs"
    __table_args__ = (
        UniqueConstraint("customer_id", "category", "key", name="uix_system_config_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    customer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=True
    )
    category: Mapped[str] = mapped_column(String(30), nullable=False, default="system")
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )
