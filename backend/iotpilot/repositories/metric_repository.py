"""Metric sample persistence helpers."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from iotpilot.db import DeviceMetric
from iotpilot.repositories.base import SQLAlchemyRepository


class MetricRepository(SQLAlchemyRepository[DeviceMetric]):
    def __init__(self, session: Session) -> None:
        super().__init__(session)

    def add_many(self, samples: Sequence[DeviceMetric]) -> None:
        self.session.add_all(samples)

    def latest_per_metric(self, device_pk: int) -> dict[str, DeviceMetric]:
        latest = (
            self.session.query(
                DeviceMetric.metric, func.max(DeviceMetric.timestamp).label("timestamp")
            )
            .filter(DeviceMetric.device_id == device_pk)
            .group_by(DeviceMetric.metric)
            .subquery()
        )
        rows = (
            self.session.query(DeviceMetric)
            .join(
                latest,
                (DeviceMetric.metric == latest.c.metric)
                & (DeviceMetric.timestamp == latest.c.timestamp),
            )
            .filter(DeviceMetric.device_id == device_pk)
            .order_by(DeviceMetric.id.desc())
            .all()
        )
        result: dict[str, DeviceMetric] = {}
        for row in rows:
            result.setdefault(row.metric, row)
        return result

    def history(
        self,
        device_pk: int,
        since: datetime,
        metrics: Optional[Sequence[str]] = None,
    ) -> Sequence[DeviceMetric]:
        query = self.session.query(DeviceMetric).filter(
            DeviceMetric.device_id == device_pk,
            DeviceMetric.timestamp >= since,
        )
        if metrics:
            query = query.filter(DeviceMetric.metric.in_(metrics))
        return query.order_by(DeviceMetric.timestamp.asc(), DeviceMetric.id.asc()).all()
