"""Celery tasks for device commands and liveness tracking."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from celery import shared_task

from iotpilot.core.config import settings
from iotpilot.core.logging import get_logger
from iotpilot.db import SessionLocal
from iotpilot.services.command_service import CommandService
from iotpilot.services.device_service import DeviceService

logger = get_logger(__name__)


@shared_task(name="execute_device_command")
def execute_device_command(command_id: int) -> str:
    """Run a queued device command over SSH; returns the final status."""
    db = SessionLocal()
    try:
        command = asyncio.run(CommandService(db).execute(command_id))
        return command.status
    finally:
        db.close()


@shared_task(name="mark_stale_devices_offline")
def mark_stale_devices_offline() -> int:
    """Mark ONLINE devices that stopped reporting as OFFLINE."""
    db = SessionLocal()
    try:
        stale = DeviceService(db).mark_stale_offline(
            timedelta(minutes=settings.device_offline_after_minutes)
        )
        if stale:
            logger.info("Marked %d devices offline", len(stale))
        return len(stale)
    finally:
        db.close()
