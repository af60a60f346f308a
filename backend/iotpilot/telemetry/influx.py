"""InfluxDB v2 line-protocol writer.

Writes are best effort. Failures are logged and counted but never reach the
caller, so heartbeats keep succeeding while InfluxDB is down.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Any, Mapping, Optional

import httpx

from iotpilot.core.config import settings
from iotpilot.core.logging import get_logger
from iotpilot.core.metrics import record_influx_write
from iotpilot.core.time import to_nanoseconds, utcnow

logger = get_logger(__name__)

# heartbeat field -> measurement
METRIC_MEASUREMENTS = {
    "cpu_usage": "cpu_usage",
    "cpu_temperature": "cpu_temperature",
    "memory_usage_percent": "memory_usage",
    "disk_usage_percent": "disk_usage",
}

_TAG_SPECIALS = re.compile(r"([, =])")


@dataclass(slots=True, frozen=True)
class InfluxConfig:
    url: str
    token: str
    org: str = "iotpilot"
    bucket: str = "devices"
    timeout: float = 10.0


class InfluxConfigError(ValueError):
    pass


def escape_tag(value: str) -> str:
    return _TAG_SPECIALS.sub(r"\\\1", value)


def format_metrics(
    device_id: str, metrics: Mapping[str, Any], timestamp: Optional[datetime] = None
) -> str:
    """Line protocol for the numeric metrics in ``metrics``, one line per field."""
    ts = to_nanoseconds(timestamp or utcnow())
    tag = escape_tag(device_id)
    lines = []
    for field, measurement in METRIC_MEASUREMENTS.items():
        value = metrics.get(field)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        lines.append(f"{measurement},device_id={tag} value={value} {ts}")
    return "\n".join(lines)


class InfluxDBWriter:
    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        org: Optional[str] = None,
        bucket: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.url = url if url is not None else settings.influxdb_url
        self.token = token if token is not None else settings.influxdb_token
        self.org = org or settings.influxdb_org or "iotpilot"
        self.bucket = bucket or settings.influxdb_bucket or "devices"
        self.timeout = timeout or settings.influxdb_timeout
        self._transport = transport

    def validate_config(self) -> InfluxConfig:
        if not self.url:
            raise InfluxConfigError("INFLUXDB_URL not configured")
        if not self.token:
            raise InfluxConfigError("INFLUXDB_TOKEN not configured")
        return InfluxConfig(
            url=self.url.rstrip("/"),
            token=self.token,
            org=self.org,
            bucket=self.bucket,
            timeout=self.timeout,
        )

    @property
    def configured(self) -> bool:
        return bool(self.url and self.token)

    def _client(self, config: InfluxConfig) -> httpx.Client:
        return httpx.Client(timeout=config.timeout, transport=self._transport)

    def send(
        self,
        device_id: str,
        metrics: Mapping[str, Any],
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Write ``metrics``; True when InfluxDB accepted the batch."""
        try:
            config = self.validate_config()
        except InfluxConfigError:
            logger.debug("InfluxDB not configured, skipping metrics storage")
            record_influx_write("skipped")
            return False

        body = format_metrics(device_id, metrics, timestamp)
        if not body:
            return False

        try:
            with self._client(config) as client:
                response = client.post(
                    f"{config.url}/api/v2/write",
                    params={"org": config.org, "bucket": config.bucket, "precision": "ns"},
                    headers={
                        "Authorization": f"Token {config.token}",
                        "Content-Type": "text/plain",
                    },
                    content=body,
                )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error("InfluxDB request timed out", extra={"device_id": device_id})
            record_influx_write("failure")
            return False
        except httpx.HTTPError as exc:
            logger.error(
                "Failed to send metrics to InfluxDB: %s", exc, extra={"device_id": device_id}
            )
            record_influx_write("failure")
            return False

        record_influx_write("success")
        return True

    def check_health(self) -> dict[str, Any]:
        if not self.configured:
            return {"status": "not_configured"}
        config = self.validate_config()
        try:
            with self._client(config) as client:
                response = client.get(f"{config.url}/health")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            return {"status": "unhealthy", "error": str(exc)}
        return {"status": "healthy"}


@lru_cache(maxsize=1)
def get_influx_writer() -> InfluxDBWriter:
    return InfluxDBWriter()
