"""Metric history queries with optional downsampling and bucketing."""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Sequence

from sqlalchemy.orm import Session

from iotpilot.core.time import utcnow
from iotpilot.db import Device, DeviceMetric
from iotpilot.domain.devices import MetricWindow
from iotpilot.domain.exceptions import BadRequestError
from iotpilot.repositories import MetricRepository

PERIODS = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
RESOLUTIONS = ("auto", "raw", "minute", "hour", "day")

AUTO_DOWNSAMPLE_ABOVE = 1000
AUTO_TARGET_POINTS = 400


def _bucket(timestamp: datetime, resolution: str) -> datetime:
    if resolution == "minute":
        return timestamp.replace(second=0, microsecond=0)
    if resolution == "hour":
        return timestamp.replace(minute=0, second=0, microsecond=0)
    return timestamp.replace(hour=0, minute=0, second=0, microsecond=0)


def _point(timestamp: datetime, value: float, unit) -> dict[str, Any]:
    return {"timestamp": timestamp, "value": value, "unit": unit}


def downsample(rows: Sequence[DeviceMetric]) -> list[DeviceMetric]:
    step = math.ceil(len(rows) / AUTO_TARGET_POINTS)
    return list(rows[::step])


def aggregate(rows: Sequence[DeviceMetric], resolution: str) -> dict[str, list[dict[str, Any]]]:
    """Average values per (metric, time bucket)."""
    buckets: dict[tuple[str, datetime], list[float]] = defaultdict(list)
    units: dict[str, Any] = {}
    for row in rows:
        buckets[(row.metric, _bucket(row.timestamp, resolution))].append(row.value)
        units.setdefault(row.metric, row.unit)

    grouped: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for (metric, bucket), values in sorted(buckets.items(), key=lambda item: item[0][1]):
        grouped[metric].append(_point(bucket, sum(values) / len(values), units[metric]))
    return dict(grouped)


class MetricService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.metrics = MetricRepository(session)

    def history(self, device: Device, window: MetricWindow) -> dict[str, Any]:
        if window.period not in PERIODS:
            raise BadRequestError(f"Invalid period. Supported periods: {', '.join(PERIODS)}")
        if window.resolution not in RESOLUTIONS:
            raise BadRequestError(
                f"Invalid resolution. Supported resolutions: {', '.join(RESOLUTIONS)}"
            )

        since = utcnow() - PERIODS[window.period]
        rows = self.metrics.history(device.id, since, window.metrics)
        resolution = window.resolution
        total = len(rows)

        if resolution in ("minute", "hour", "day"):
            series = aggregate(rows, resolution)
            processed = sum(len(points) for points in series.values())
        else:
            if resolution == "auto" and len(rows) > AUTO_DOWNSAMPLE_ABOVE:
                rows = downsample(rows)
                resolution = "downsampled"
            series = defaultdict(list)
            for row in rows:
                series[row.metric].append(_point(row.timestamp, row.value, row.unit))
            series = dict(series)
            processed = len(rows)

        return {
            "metrics": series,
            "period": window.period,
            "resolution": resolution,
            "total_points": total,
            "processed_points": processed,
        }
