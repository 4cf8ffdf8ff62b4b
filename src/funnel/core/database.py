"""Async SQLAlchemy engine, declarative base, and session factory.

Provides:
- Base: Declarative base shared by every model (users, deals, inventory, ...)
- get_session(): AsyncSession generator used as the repositories' session factory
- init_db(): Creates tables on startup, retried while the database comes up
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import MetaData, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.funnel.config import get_settings

logger = structlog.get_logger(__name__)

# ── Module-level engine (lazy init) ────────────────────────────────────────

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async engine singleton."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            echo=False,
        )
    return _engine


# ── Declarative Base ────────────────────────────────────────────────────────

naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all persisted models."""

    metadata = MetaData(naming_convention=naming_convention)


# ── Session Factory ─────────────────────────────────────────────────────────


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession bound to the shared engine."""
    engine = get_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


# ── Database Initialization ─────────────────────────────────────────────────


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(OSError),
    reraise=True,
)
async def init_db() -> None:
    """Verify connectivity and create tables if they don't exist.

    Table creation is skipped when DB_INIT_CREATE_TABLES is false, in which
    case the schema is expected to be managed by alembic.
    """
    # Models must be imported so their tables are registered on Base.metadata
    from src.funnel.deals import models as _deal_models  # noqa: F401
    from src.funnel.inventory import models as _inventory_models  # noqa: F401
    from src.funnel.models import users as _user_models  # noqa: F401
    from src.funnel.sublocations import models as _sublocation_models  # noqa: F401

    settings = get_settings()
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if settings.DB_INIT_CREATE_TABLES:
            await conn.run_sync(Base.metadata.create_all)
    logger.info("database.initialized", create_tables=settings.DB_INIT_CREATE_TABLES)


async def close_db() -> None:
    """Dispose of the engine and close all connections."""
    global _engine
    if _engine:
        await _engine.dispose()
        _engine = None
