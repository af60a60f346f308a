"""Time-series export of device metrics."""

from .influx import InfluxConfig, InfluxDBWriter, get_influx_writer

__all__ = ["InfluxConfig", "InfluxDBWriter", "get_influx_writer"]
