"""Celery application configuration."""

from __future__ import annotations

from urllib.parse import urlparse, urlunparse

from celery import Celery

from iotpilot.core.config import settings


def _ensure_rediss_ssl(url: str, environment: str = "production") -> str:
    """Add ``ssl_cert_reqs`` to ``rediss://`` URLs that don't carry one."""
    if not url or not url.startswith("rediss://"):
        return url
    parsed = urlparse(url)
    if parsed.query and "ssl_cert_reqs" in parsed.query:
        return url
    # CERT_NONE only in development, CERT_REQUIRED otherwise
    cert_reqs = (
        "CERT_NONE" if environment.lower() in ("development", "dev", "local") else "CERT_REQUIRED"
    )
    query = (
        f"ssl_cert_reqs={cert_reqs}"
        if parsed.query == ""
        else f"{parsed.query}&ssl_cert_reqs={cert_reqs}"
    )
    return urlunparse(parsed._replace(query=query))


broker_url = _ensure_rediss_ssl(settings.celery_broker_url, settings.environment)
result_backend = _ensure_rediss_ssl(settings.celery_result_backend, settings.environment)

celery_app = Celery(
    "iotpilot",
    broker=broker_url,
    backend=result_backend,
    include=[
        "iotpilot.tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "mark-stale-devices-offline": {
            "task": "mark_stale_devices_offline",
            "schedule": 60.0,
        },
    },
)
