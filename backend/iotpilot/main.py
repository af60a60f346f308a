"""Main FastAPI application."""

import time

import redis as redis_client
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from iotpilot.api import (
    admin,
    alerts,
    api_keys,
    auth,
    commands,
    customers,
    devices,
    health,
    heartbeat,
    metrics,
    metrics_history,
    settings as settings_api,
    ssh,
)
from iotpilot.api import errors
from iotpilot.core import settings, setup_logging
from iotpilot.core.logging import get_logger
from iotpilot.core.metrics import (
    HTTP_REQUEST_DURATION_SECONDS,
    HTTP_REQUESTS_IN_PROGRESS,
    HTTP_REQUESTS_TOTAL,
    set_app_info,
)
from iotpilot.db import SessionLocal, seed_default_data
from iotpilot.domain.exceptions import DomainError
from iotpilot.services.ssh import get_ssh_session_manager

# Setup logging
setup_logging()

# Create app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
)

set_app_info(version=settings.api_version, environment=settings.environment)

# Rate limiter shared with the auth router - disabled during testing
app.state.limiter = auth.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def prometheus_metrics_middleware(request: Request, call_next):
    """Collect Prometheus metrics for all HTTP requests."""
    if request.url.path == "/metrics":
        return await call_next(request)

    method = request.method
    # Replace numeric ids with a placeholder to keep label cardinality low
    endpoint = "/".join(
        "{id}" if part.isdigit() else part for part in request.url.path.split("/")
    )

    HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
        status_code = str(response.status_code)
    except Exception:
        status_code = "500"
        raise
    finally:
        duration = time.perf_counter() - start_time
        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()
        HTTP_REQUEST_DURATION_SECONDS.labels(method=method, endpoint=endpoint).observe(duration)
        HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, status_code=status_code).inc()

    return response


# Include routers
app.include_router(metrics.router)  # Metrics at root level (not under /api/v1)
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(api_keys.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)
app.include_router(customers.router, prefix=settings.api_prefix)
app.include_router(settings_api.router, prefix=settings.api_prefix)
app.include_router(devices.router, prefix=settings.api_prefix)
app.include_router(heartbeat.router, prefix=settings.api_prefix)
app.include_router(alerts.router, prefix=settings.api_prefix)
app.include_router(commands.router, prefix=settings.api_prefix)
app.include_router(metrics_history.router, prefix=settings.api_prefix)
app.include_router(ssh.router, prefix=settings.api_prefix)
app.include_router(health.router, prefix=settings.api_prefix)


@app.on_event("startup")
async def seed_defaults() -> None:
    """Seed default data on startup; ignore failures but log them."""
    try:
        db = SessionLocal()
    except SQLAlchemyError as exc:  # pragma: no cover - best effort
        get_logger(__name__).warning("Skipping default seed (session error): %s", exc)
        return
    try:
        seed_default_data(db)
    except SQLAlchemyError as exc:  # pragma: no cover - best effort
        get_logger(__name__).warning("Skipping default seed (operation error): %s", exc)
    finally:
        db.close()


@app.on_event("shutdown")
async def close_ssh_sessions() -> None:
    await get_ssh_session_manager().close_all()


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint (alias for /health/live)."""
    return {"status": "healthy"}


@app.get("/health/live")
async def health_live() -> dict:
    """Liveness check; only verifies the app responds."""
    return {"status": "healthy"}


@app.get("/health/ready")
async def health_ready():
    """Readiness check with dependency status.

    Returns 503 when the database or Redis is unreachable. Celery worker
    status is informational and doesn't affect overall health.
    """
    from iotpilot.celery_app import celery_app

    status = {
        "database": {"status": "healthy"},
        "redis": {"status": "healthy"},
        "celery": {"status": "unknown"},
    }
    overall_healthy = True

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except SQLAlchemyError as e:
        status["database"] = {"status": "unhealthy", "error": str(e)}
        overall_healthy = False

    try:
        r = redis_client.from_url(settings.redis_url, socket_connect_timeout=2)
        r.ping()
        r.close()
    except redis_client.RedisError as e:
        status["redis"] = {"status": "unhealthy", "error": str(e)}
        overall_healthy = False

    try:
        ping_response = celery_app.control.inspect(timeout=2.0).ping()
        if ping_response:
            status["celery"] = {
                "status": "healthy",
                "workers": len(ping_response),
                "worker_names": list(ping_response.keys()),
            }
        else:
            status["celery"] = {
                "status": "degraded",
                "workers": 0,
                "message": "No workers available",
            }
    except Exception as e:  # broker errors vary by transport
        status["celery"] = {"status": "unhealthy", "error": str(e)}

    result = {
        "status": "healthy" if overall_healthy else "unhealthy",
        "dependencies": status,
    }
    if overall_healthy:
        return result
    return JSONResponse(status_code=503, content=result)


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "message": "IoT Pilot API",
        "version": settings.api_version,
        "docs": "/docs",
    }


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Translate domain errors to HTTP responses globally."""
    http_exc = errors.to_http(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
    )
