"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
JSON error handlers, lifespan events for database initialization and
bootstrap provisioning, and the API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.funnel.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.funnel.api.v1.router import router as api_router
from src.funnel.config import get_settings
from src.funnel.core.database import close_db, get_session, init_db
from src.funnel.core.errors import register_exception_handlers
from src.funnel.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.funnel.deals.repository import DealRepository
from src.funnel.inventory.repository import InventoryRepository
from src.funnel.services.accounts import AccountService
from src.funnel.services.provisioning import bootstrap
from src.funnel.sublocations.repository import SubLocationRepository

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB, Sentry and defaults on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()
    await init_db()

    # Initialize Sentry if DSN is configured
    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    await bootstrap(get_session, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)

    app.state.account_service = AccountService(session_factory=get_session)
    app.state.deal_repository = DealRepository(session_factory=get_session)
    app.state.inventory_repository = InventoryRepository(session_factory=get_session)
    app.state.sublocation_repository = SubLocationRepository(session_factory=get_session)
    log.info("app.started", environment=settings.ENVIRONMENT.value, version=VERSION)

    yield

    await close_db()
    log.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Funnel CRM API",
        version=VERSION,
        description="Sales funnel, inventory and sublocation record-keeping",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        """Service banner."""
        return {"service": "funnel-crm", "version": VERSION, "status": "running"}

    # Prometheus metrics endpoint (infrastructure route, outside the API router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
