"""FastAPI application factory and dependency injection setup."""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from rental_ledger.api.routes import (
    expense_router,
    export_router,
    health_router,
    property_router,
    rent_router,
    report_router,
    unit_router,
)
from rental_ledger.config import get_settings
from rental_ledger.container import get_container, get_database, reset_container
from rental_ledger.exceptions import RentalLedgerError
from rental_ledger.logging_config import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from rental_ledger.repositories.sqlite import SQLiteDatabase

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown.

    Initializes logging and the container on startup, brings every unit's
    rent records up to date when configured to, and closes the database on
    shutdown.
    """
    settings = get_settings()
    configure_logging(settings)

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment.value,
    )

    container = get_container()
    _ = container.database  # Force database initialization

    if settings.catch_up_on_startup:
        container.rent_ledger_service.catch_up_all(date.today())

    logger.info("application_started")

    yield

    logger.info("application_stopping")
    reset_container()
    logger.info("application_stopped")


def get_db() -> SQLiteDatabase:
    """Database dependency. Overridable in tests via app.dependency_overrides."""
    return get_database()


async def log_request_middleware(request: Request, call_next):
    """Middleware to add request context to logs."""
    request_id = str(uuid.uuid4())[:8]
    bind_context(request_id=request_id, path=request.url.path, method=request.method)

    try:
        response = await call_next(request)
        logger.debug(
            "request_completed",
            status_code=response.status_code,
        )
        return response
    finally:
        clear_context()


async def exception_handler(request: Request, exc: RentalLedgerError) -> JSONResponse:
    """Handle domain exceptions and return appropriate JSON responses."""
    logger.warning(
        "domain_exception",
        error_code=exc.error_code,
        message=exc.message,
        context=exc.context,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Monthly rent schedules, payments and arrears for rental properties",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.middleware("http")(log_request_middleware)
    app.add_exception_handler(RentalLedgerError, exception_handler)

    # Routes take the database via Depends(); tests override this entry.
    app.dependency_overrides[SQLiteDatabase] = get_db

    app.include_router(health_router)
    app.include_router(property_router)
    app.include_router(unit_router)
    app.include_router(rent_router)
    app.include_router(expense_router)
    app.include_router(report_router)
    app.include_router(export_router)

    return app


# Create app instance for uvicorn
app = create_app()
