"""
HTTP entry point for the ERP ledger.

``create_app`` wires middleware, error handlers and routers; the lifespan
migrates the database, builds the services and runs the replenishment
scheduler for as long as the app is up.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    finance_router,
    health_router,
    inventory_router,
    manufacturing_router,
    purchasing_router,
    sales_router,
    scheduler_router,
)
from src.config import configure_logging, get_logger, get_settings
from src.core.exceptions import ConfigurationError

logger = get_logger(__name__)

API_VERSION = "1.0.0"

ROUTERS: tuple[APIRouter, ...] = (
    health_router,
    inventory_router,
    sales_router,
    purchasing_router,
    manufacturing_router,
    finance_router,
    scheduler_router,
)


async def _prepare_database() -> None:
    from src.infrastructure.storage.sqlite.migrations import (
        run_migrations,
        verify_schema_integrity,
    )

    results = await run_migrations()
    failed = [r for r in results if not r.success]
    if failed:
        raise ConfigurationError(
            f"Migration v{failed[0].version} failed: {failed[0].error}",
            details={"version": failed[0].version},
        )

    broken = [c["check"] for c in await verify_schema_integrity() if c["status"] != "PASS"]
    if broken:
        logger.warning("schema_integrity_checks_failed", checks=broken)
    logger.info("database_ready", migrations_applied=len(results))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    from src.application.services import get_services, shutdown_services

    settings = get_settings()
    logger.info("application_starting", host=settings.api.host, port=settings.api.port)

    await _prepare_database()
    services = await get_services()
    await services.scheduler.start()
    logger.info("application_started", scheduler_enabled=settings.scheduler.enabled)

    try:
        yield
    finally:
        logger.info("application_stopping")
        await shutdown_services()
        logger.info("application_stopped")


def create_app() -> FastAPI:
    """Build the FastAPI app from current settings."""
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Inventory ledger, order fulfillment and replenishment",
        version=API_VERSION,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added runs outermost, so request logs carry the mapped error status
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def liveness() -> dict[str, str]:
        """Container liveness probe."""
        return {"status": "healthy", "version": API_VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
