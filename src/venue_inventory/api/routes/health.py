"""Liveness and database readiness endpoints."""

import time

from fastapi import APIRouter

from venue_inventory.application.dto.responses import DatabaseHealthResponse, HealthResponse
from venue_inventory.config import get_logger, get_settings

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

_started = time.monotonic()


def _uptime() -> float:
    return round(time.monotonic() - _started, 3)


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=_uptime(),
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Ping the ledger database and report its schema version.

    The service counts as unhealthy while the database is unreachable or
    migrations are still pending.
    """
    from venue_inventory.infrastructure.storage.sqlite.connection import get_pool
    from venue_inventory.infrastructure.storage.sqlite.migrations import get_migration_status

    try:
        pool = await get_pool()
        started = time.perf_counter()
        available = await pool.ping()
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        migrations = await get_migration_status(pool.db_path)
        database = DatabaseHealthResponse(
            name="sqlite",
            available=available,
            latency_ms=latency_ms,
            schema_version=migrations["current_version"],
            pending_migrations=migrations["pending_migrations"],
        )
    except Exception as e:
        logger.warning("database_health_check_failed", error=str(e))
        database = DatabaseHealthResponse(name="sqlite", available=False, error=str(e))

    healthy = database.available and not database.pending_migrations
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=get_settings().app_version,
        uptime_seconds=_uptime(),
        database=database,
    )
