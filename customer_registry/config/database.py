"""
Database configuration and connection management.

The engine and session factory are built once at startup and handed to the
record store explicitly; nothing here holds a module-level engine.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ..models.database import Base
from ..utils.errors import StoreUnavailable
from .settings import Settings


logger = logging.getLogger(__name__)

SLOW_QUERY_SECONDS = 0.1


class DatabaseConfig:
    """Database configuration management."""

    def __init__(self, settings: Settings):
        self.database_url = settings.DATABASE_URL
        self.echo = settings.DATABASE_ECHO
        self.pool_size = settings.DATABASE_POOL_SIZE
        self.max_overflow = settings.DATABASE_MAX_OVERFLOW
        self.pool_timeout = settings.DATABASE_POOL_TIMEOUT
        self.pool_recycle = settings.DATABASE_POOL_RECYCLE

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def build_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create the async engine with driver-specific pool arguments."""
    if config.is_sqlite:
        # SQLite doesn't take the server pool sizing arguments
        engine = create_async_engine(
            config.database_url,
            echo=config.echo,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(
            config.database_url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
        )
    _register_listeners(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


def _register_listeners(engine: AsyncEngine) -> None:
    sync_engine = engine.sync_engine

    if sync_engine.dialect.name == "sqlite":
        @event.listens_for(sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
            """Enable foreign key enforcement (and thus ON DELETE CASCADE) on SQLite."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            # Let SQLAlchemy emit BEGIN itself (see do_begin)
            dbapi_connection.isolation_level = None

        @event.listens_for(sync_engine, "begin")
        def do_begin(conn):
            # Take the write lock up front; concurrent writers wait on the busy
            # timeout instead of failing on a read-to-write lock upgrade.
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    @event.listens_for(sync_engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # noqa: ARG001
        context._query_start_time = time.time()

    @event.listens_for(sync_engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # noqa: ARG001
        """Log slow queries for performance monitoring."""
        total = time.time() - getattr(context, "_query_start_time", time.time())
        if total > SLOW_QUERY_SECONDS:
            logger.warning("Slow query detected: %.3fs - %s...", total, statement[:100])


async def create_database_tables(engine: AsyncEngine) -> None:
    """Create all database tables (tests and local development; production uses Alembic)."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error("Failed to create database tables: %s", e)
        raise


async def connect_with_retry(
    engine: AsyncEngine,
    attempts: int = 10,
    initial_delay: float = 1.0,
    max_delay: float = 8.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Ping the database until it answers, backing off exponentially.

    Only used at startup; request handling never retries store operations.
    Raises StoreUnavailable once every attempt has failed.
    """
    delay = initial_delay
    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Successfully connected and pinged database.")
            return
        except (SQLAlchemyError, OSError) as exc:
            last_error = exc
            if attempt == attempts:
                logger.error("DB ping failed (attempt %d/%d): %s", attempt, attempts, exc)
                break
            logger.warning(
                "DB ping failed (attempt %d/%d): %s. Retrying in %.1fs...",
                attempt, attempts, exc, delay,
            )
            await sleep(delay)
            delay = min(delay * 2, max_delay)
    raise StoreUnavailable(
        f"Failed to connect to database after {attempts} attempts",
        details={"error": str(last_error)} if last_error else None,
    )


async def check_async_database_connection(engine: AsyncEngine) -> bool:
    """Check if async database connection is working."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.error("Async database connection check failed: %s", e)
        return False


async def async_database_health_check(engine: AsyncEngine) -> dict:
    """Database health check with pool statistics."""
    connection_ok = await check_async_database_connection(engine)
    pool = engine.pool
    pool_stats = {}
    for name in ("size", "checkedin", "checkedout", "overflow"):
        stat = getattr(pool, name, None)
        if callable(stat):
            pool_stats[name] = stat()
    return {
        "status": "healthy" if connection_ok else "unhealthy",
        "connection": connection_ok,
        "pool_stats": pool_stats,
        # Hide credentials
        "database_url": engine.url.render_as_string(hide_password=True).split("@")[-1],
    }
