"""Remote device commands: queueing and SSH execution."""

from __future__ import annotations

import re
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from iotpilot.application.bus import EventBus, get_event_bus
from iotpilot.core.config import settings
from iotpilot.core.logging import get_logger
from iotpilot.core.metrics import record_device_command
from iotpilot.db import Device, DeviceCommand, User
from iotpilot.domain.context import TenantContext
from iotpilot.domain.devices import (
    DEFAULT_DEVICE_SETTINGS,
    CommandStatus,
    CommandType,
    DeviceStatus,
)
from iotpilot.domain.events import CommandExecuted
from iotpilot.domain.exceptions import BadRequestError, InvalidDeviceData, NotFoundError
from iotpilot.repositories import CommandRepository, DeviceRepository
from iotpilot.services.ssh import (
    SSHSessionError,
    SSHSessionManager,
    SSHTimeoutError,
    get_ssh_session_manager,
)

logger = get_logger(__name__)

_PACKAGE_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9.+_-]*$")

SHELL_COMMANDS = {
    CommandType.RESTART: "sudo reboot",
    CommandType.REBOOT: "sudo reboot",
    CommandType.SHUTDOWN: "sudo shutdown -h now",
    CommandType.UPDATE: "sudo apt-get update && sudo apt-get upgrade -y",
    CommandType.INSTALL: "sudo apt-get install -y {package}",
    CommandType.UNINSTALL: "sudo apt-get remove -y {package}",
}
OFFLINE_AFTER = (CommandType.RESTART, CommandType.REBOOT)


def parse_command(raw: str) -> CommandType:
    try:
        return CommandType.parse(raw)
    except InvalidDeviceData as exc:
        raise BadRequestError(exc.message) from exc


def validate_arguments(command: CommandType, arguments: Optional[dict[str, Any]]) -> dict:
    arguments = dict(arguments or {})
    if command == CommandType.CUSTOM:
        if not str(arguments.get("command") or "").strip():
            raise BadRequestError("Custom commands require arguments.command")
    elif command in (CommandType.INSTALL, CommandType.UNINSTALL):
        package = str(arguments.get("package") or "").strip()
        if not package:
            raise BadRequestError(f"{command.value} requires arguments.package")
        if not _PACKAGE_NAME.match(package):
            raise BadRequestError(f"Invalid package name: {package}")
        arguments["package"] = package
    return arguments


def shell_command(command: CommandType, arguments: Optional[dict[str, Any]]) -> str:
    """Shell line run on the device for ``command``."""
    arguments = arguments or {}
    if command == CommandType.CUSTOM:
        return str(arguments["command"]).strip()
    return SHELL_COMMANDS[command].format(package=arguments.get("package", ""))


class CommandService:
    def __init__(
        self,
        session: Session,
        events: Optional[EventBus] = None,
        ssh_manager: Optional[SSHSessionManager] = None,
    ) -> None:
        self.session = session
        self.events = events or get_event_bus()
        self._ssh_manager = ssh_manager
        self.commands = CommandRepository(session)
        self.devices = DeviceRepository(session)

    @property
    def ssh_manager(self) -> SSHSessionManager:
        if self._ssh_manager is None:
            self._ssh_manager = get_ssh_session_manager()
        return self._ssh_manager

    # -------------------------------------------------------------------------
    # Queries

    def list_commands(self, device: Device, limit: int = 10) -> Sequence[DeviceCommand]:
        return self.commands.recent_for_device(device.id, limit=limit)

    def get_command(self, device: Device, command_id: int) -> DeviceCommand:
        command = self.commands.get_for_device(device.id, command_id)
        if not command:
            raise NotFoundError("Command not found")
        return command

    # -------------------------------------------------------------------------
    # Mutations

    def create_command(
        self,
        device: Device,
        raw_command: str,
        arguments: Optional[dict[str, Any]],
        user: Optional[User],
        context: TenantContext,
    ) -> DeviceCommand:
        """Persist a PENDING command; dispatch is left to the caller."""
        command_type = parse_command(raw_command)
        command = DeviceCommand(
            device_id=device.id,
            customer_id=device.customer_id,
            user_id=user.id if user else context.user_id,
            command=command_type.value,
            arguments=validate_arguments(command_type, arguments),
            status=CommandStatus.PENDING.value,
        )
        self.commands.add(command)
        self.commands.commit()
        self.commands.refresh(command)
        logger.info(
            "Device command queued",
            extra={
                "command_id": command.id,
                "command": command.command,
                "device_id": device.device_id,
                "customer_id": device.customer_id,
            },
        )
        return command

    async def execute(self, command_id: int) -> DeviceCommand:
        """Run a queued command over SSH and record its outcome."""
        command = self.commands.get_by_id(command_id)
        if command is None:
            raise NotFoundError("Command not found")
        if command.is_finished:
            return command
        device = self.devices.get_by_pk(command.device_id)

        command.mark_executing()
        self.commands.commit()

        command_type = CommandType(command.command)
        try:
            await self._run(device, command, command_type)
        except Exception as exc:
            logger.exception("Error executing device command %s", command.id)
            command.mark_failed(f"Command execution failed: {exc}")
        finally:
            self.commands.commit()
            self.commands.refresh(command)

        record_device_command(command.command, command.status)
        logger.info(
            "Device command finished",
            extra={
                "command_id": command.id,
                "command": command.command,
                "status": command.status,
                "device_id": device.device_id,
            },
        )
        self.events.publish(
            CommandExecuted(
                tenant_id=command.customer_id,
                device_pk=device.id,
                command_id=command.id,
                command=command.command,
                status=command.status,
            )
        )
        return command

    async def _run(self, device: Device, command: DeviceCommand, command_type: CommandType):
        host = device.ssh_host
        if not host:
            command.mark_failed("No IP address available for SSH connection")
            return

        stored = {**DEFAULT_DEVICE_SETTINGS, **(device.settings or {})}
        username = stored.get("ssh_username") or settings.ssh_default_username
        password = device.ssh_password
        private_key = device.ssh_private_key
        if not password and not private_key:
            command.mark_failed("No SSH credentials configured for device")
            return

        connection = None
        try:
            connection = await self.ssh_manager.open_session(
                host=host,
                port=int(stored.get("ssh_port") or 22),
                username=username,
                password=password,
                private_key=private_key,
            )
            result = await connection.run_command(shell_command(command_type, command.arguments))
        except SSHTimeoutError as exc:
            command.mark_timeout(str(exc))
            return
        except SSHSessionError as exc:
            command.mark_failed(f"SSH connection failed: {exc}")
            return
        finally:
            if connection is not None:
                await connection.close()

        command.exit_code = result.exit_status
        if result.exit_status == 0:
            command.mark_completed(result.stdout)
            if command_type in OFFLINE_AFTER:
                device.status = DeviceStatus.OFFLINE.value
        else:
            command.output = result.stdout
            command.mark_failed(result.stderr or f"Command exited with status {result.exit_status}")
