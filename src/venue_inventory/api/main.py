"""FastAPI application for the venue inventory ledger."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from venue_inventory.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from venue_inventory.api.middleware.error_handler import setup_exception_handlers
from venue_inventory.api.routes import health, inventory, purchase_orders
from venue_inventory.config import configure_logging, get_logger, get_settings
from venue_inventory.infrastructure.storage.sqlite import close_pool, get_pool
from venue_inventory.infrastructure.storage.sqlite.migrations import run_migrations

logger = get_logger(__name__)

ROUTERS = (health.router, inventory.router, purchase_orders.router)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Bring the ledger schema up to date before serving, release the pool after."""
    db_path = get_settings().storage.db_path

    results = await run_migrations()
    failed = [r.version for r in results if not r.success]
    if failed:
        logger.error("startup_migrations_failed", db_path=str(db_path), failed=failed)
        raise RuntimeError(f"Migrations failed: {', '.join(failed)}")

    await get_pool()
    logger.info(
        "ledger_service_started",
        db_path=str(db_path),
        migrations_applied=[r.version for r in results],
    )

    try:
        yield
    finally:
        await close_pool()
        logger.info("ledger_service_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Batch-level stock ledger and purchase order lifecycle for event venues",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Starlette runs the last added middleware first
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["GET", "POST", "PATCH", "DELETE"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", "X-Response-Time"],
        )

    setup_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def root_health() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()
