"""
GenEdu Backend — Database Session Management
==============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   One engine (connection pool) is created at process start by the
       application lifespan and shared by every request. Each request gets
       its own session that commits on success and rolls back on error.
Who:   Route handlers via FastAPI's dependency injection; the lifespan
       handler for init/ping/dispose; tests for an in-memory engine.

Connection Pooling (PostgreSQL):
    pool_size=20, max_overflow=10, pool_pre_ping, pool_recycle=3600.
    SQLite URLs (tests) use the dialect's own pool; callers may pass
    engine keyword arguments (e.g. poolclass=StaticPool) explicitly.
"""

import logging
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential_jitter,
)

from genedu.config import settings

logger = logging.getLogger(__name__)

engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations.
    """
    pass


# ── Engine Lifecycle ──────────────────────────────────────────────────────
def init_engine(url: Optional[str] = None, **engine_kwargs: Any) -> AsyncEngine:
    """
    Create the process-wide engine and session factory.

    Args:
        url: Async SQLAlchemy URL. Defaults to settings.sqlalchemy_url.
        engine_kwargs: Passed to create_async_engine. When omitted for a
            non-SQLite URL, pool sizing comes from settings.

    Returns:
        The new engine (also stored in the module globals).
    """
    global engine, async_session_factory

    url = url or settings.sqlalchemy_url
    if not engine_kwargs and not url.startswith("sqlite"):
        engine_kwargs = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": settings.db_pool_pre_ping,
            "pool_recycle": 3600,
        }

    engine = create_async_engine(
        url,
        echo=settings.log_level == "DEBUG",
        **engine_kwargs,
    )
    # expire_on_commit=False: objects stay readable after the request commits
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine


def get_engine() -> AsyncEngine:
    """Return the shared engine, creating it from settings on first use."""
    if engine is None:
        init_engine()
    return engine


async def ping() -> None:
    """Run SELECT 1 against the shared engine. Raises on failure."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database() -> None:
    """
    Probe the database at startup, retrying with exponential backoff.

    Raises the last connection error once settings.db_connect_attempts
    attempts are exhausted.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(settings.db_connect_attempts),
        wait=wait_exponential_jitter(
            initial=settings.db_connect_min_wait,
            max=settings.db_connect_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            await ping()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the shared factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    if async_session_factory is None:
        init_engine()

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close all pooled connections. Called during application shutdown."""
    global engine, async_session_factory
    if engine is not None:
        await engine.dispose()
    engine = None
    async_session_factory = None
