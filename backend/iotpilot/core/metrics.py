"""Prometheus metrics for the IoT Pilot API.

Exposed at ``/metrics``. Categories:
- HTTP request metrics (latency, count, in-flight)
- Authentication (login attempts)
- Fleet telemetry (heartbeats, alerts, InfluxDB writes)
- Remote execution (device commands, open SSH sessions)
"""

from prometheus_client import Counter, Gauge, Histogram, Info

APP_INFO = Info("iotpilot_app", "IoT Pilot application information")

# HTTP
HTTP_REQUESTS_TOTAL = Counter(
    "iotpilot_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "iotpilot_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "iotpilot_http_requests_in_progress",
    "Number of HTTP requests currently in progress",
    ["method", "endpoint"],
)

# Authentication
AUTH_LOGIN_ATTEMPTS_TOTAL = Counter(
    "iotpilot_auth_login_attempts_total",
    "Total login attempts",
    ["status"],  # success, failure
)

# Telemetry
HEARTBEATS_TOTAL = Counter(
    "iotpilot_heartbeats_total",
    "Heartbeats received from device agents",
    ["app_status"],
)

ALERTS_RAISED_TOTAL = Counter(
    "iotpilot_alerts_raised_total",
    "Alerts raised for devices",
    ["type", "severity"],
)

INFLUXDB_WRITES_TOTAL = Counter(
    "iotpilot_influxdb_writes_total",
    "InfluxDB line-protocol write attempts",
    ["status"],  # success, failure, skipped
)

# Remote execution
DEVICE_COMMANDS_TOTAL = Counter(
    "iotpilot_device_commands_total",
    "Device commands by type and final status",
    ["command", "status"],
)

SSH_SESSIONS_OPEN = Gauge(
    "iotpilot_ssh_sessions_open",
    "Number of tracked SSH sessions currently open",
)


def set_app_info(version: str, environment: str) -> None:
    APP_INFO.info({"version": version, "environment": environment})


def record_login_attempt(success: bool) -> None:
    status = "success" if success else "failure"
    AUTH_LOGIN_ATTEMPTS_TOTAL.labels(status=status).inc()


def record_heartbeat(app_status: str | None) -> None:
    HEARTBEATS_TOTAL.labels(app_status=app_status or "UNKNOWN").inc()


def record_alert(alert_type: str, severity: str) -> None:
    ALERTS_RAISED_TOTAL.labels(type=alert_type, severity=severity).inc()


def record_influx_write(status: str) -> None:
    """Record an InfluxDB write outcome (success, failure or skipped)."""
    INFLUXDB_WRITES_TOTAL.labels(status=status).inc()


def record_device_command(command: str, status: str) -> None:
    DEVICE_COMMANDS_TOTAL.labels(command=command, status=status).inc()
