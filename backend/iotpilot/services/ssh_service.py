"""Tracked SSH sessions against devices."""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.application.bus import EventBus, get_event_bus
from iotpilot.core.config import settings
from iotpilot.core.logging import TenantLoggerAdapter, get_logger
from iotpilot.db import Device, SSHSession
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import DEFAULT_DEVICE_SETTINGS, SshCredentials
from iotpilot.domain.events import SSHSessionEnded, SSHSessionStarted
from iotpilot.domain.exceptions import (
    BadRequestError,
    ConflictError,
    DeviceUnreachable,
    InvalidDeviceData,
    NotFoundError,
)
from iotpilot.domain.policies import DeviceAccessiblePolicy, SSHAllowedPolicy
from iotpilot.domain.specifications import filter_by_tenant
from iotpilot.repositories import DeviceRepository, SSHSessionRepository
from iotpilot.services.ssh import (
    SSHCommandResult,
    SSHSessionError,
    SSHSessionManager,
    get_ssh_session_manager,
)

_logger = get_logger(__name__)


class SSHService:
    def __init__(
        self,
        session: Session,
        events: Optional[EventBus] = None,
        ssh_manager: Optional[SSHSessionManager] = None,
    ) -> None:
        self.session = session
        self.events = events or get_event_bus()
        self.ssh_manager = ssh_manager or get_ssh_session_manager()
        self.devices = DeviceRepository(session)
        self.sessions = SSHSessionRepository(session)

    # -------------------------------------------------------------------------
    # Queries

    def list_sessions(
        self, device_pk: int, context: TenantContext, active: Optional[bool] = None
    ) -> Sequence[SSHSession]:
        device = DeviceAccessiblePolicy(context).check(self.devices.get_by_pk(device_pk))
        return filter_by_tenant(self.sessions.list_for_device(device.id, active=active), context)

    def get_session(self, device_pk: int, session_id: str, context: TenantContext) -> SSHSession:
        device = DeviceAccessiblePolicy(context).check(self.devices.get_by_pk(device_pk))
        record = self.sessions.get_for_device(device.id, session_id)
        if record is None:
            raise NotFoundError("SSH session not found")
        return record

    # -------------------------------------------------------------------------
    # Mutations

    async def open_session(self, device_pk: int, context: TenantContext) -> SSHSession:
        device = SSHAllowedPolicy(context).check(self.devices.get_by_pk(device_pk))
        credentials = self._credentials(device)
        host = device.ssh_host
        if not host:
            raise BadRequestError("No IP address available for SSH connection")

        session_id = str(uuid.uuid4())
        try:
            await self.ssh_manager.open_session(
                host=host,
                port=credentials.port,
                username=credentials.username,
                password=credentials.password,
                private_key=credentials.private_key,
                session_id=session_id,
            )
        except SSHSessionError as exc:
            raise DeviceUnreachable(f"SSH connection failed: {exc}") from exc

        record = SSHSession(
            id=session_id,
            device_id=device.id,
            customer_id=device.customer_id,
            user_id=context.user_id,
            ip_address=host,
            username=credentials.username,
            port=credentials.port,
            is_active=True,
            command_log=[],
        )
        self.sessions.add(record)
        self.sessions.commit()
        self.sessions.refresh(record)

        TenantLoggerAdapter(_logger, context).info(
            "SSH session opened", extra={"session_id": session_id, "device_id": device.device_id}
        )
        self.events.publish(
            SSHSessionStarted(
                tenant_id=device.customer_id,
                session_id=session_id,
                device_pk=device.id,
                user_id=context.user_id,
            )
        )
        return record

    async def run_command(
        self, device_pk: int, session_id: str, command: str, context: TenantContext
    ) -> SSHCommandResult:
        record = self.get_session(device_pk, session_id, context)
        if not record.is_active:
            raise ConflictError("SSH session is closed")
        connection = self.ssh_manager.get(session_id)
        if connection is None or connection.closed:
            record.close_session()
            self.sessions.commit()
            raise ConflictError("SSH session is no longer connected")

        try:
            result = await connection.run_command(command)
        except SSHSessionError as exc:
            record.add_command(command, None)
            self.sessions.commit()
            raise DeviceUnreachable(f"Command failed: {exc}") from exc

        record.add_command(command, result.exit_status)
        self.sessions.commit()
        return result

    async def close_session(
        self, device_pk: int, session_id: str, context: TenantContext
    ) -> SSHSession:
        record = self.get_session(device_pk, session_id, context)
        await self.ssh_manager.close_session(session_id)
        if not record.is_active:
            return record

        record.close_session()
        self.sessions.commit()
        self.sessions.refresh(record)

        TenantLoggerAdapter(_logger, context).info(
            "SSH session closed", extra={"session_id": session_id}
        )
        self.events.publish(
            SSHSessionEnded(
                tenant_id=record.customer_id,
                session_id=session_id,
                device_pk=record.device_id,
                command_count=len(record.commands),
            )
        )
        return record

    # -------------------------------------------------------------------------
    # Helpers

    @staticmethod
    def _credentials(device: Device) -> SshCredentials:
        stored = {**DEFAULT_DEVICE_SETTINGS, **(device.settings or {})}
        try:
            return SshCredentials(
                username=stored.get("ssh_username") or settings.ssh_default_username,
                password=device.ssh_password,
                private_key=device.ssh_private_key,
                port=int(stored.get("ssh_port") or 22),
            )
        except InvalidDeviceData as exc:
            raise BadRequestError(exc.message) from exc
