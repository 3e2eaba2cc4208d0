"""
Async PostgreSQL access for the campus events backend.

SQLAlchemy Core over asyncpg. The scheduler and the HTTP routes share one
engine, created lazily from DATABASE_URL and disposed on shutdown.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .tables import metadata  # noqa: F401 - exported for Alembic

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None

# Accepted spellings of a plain (driverless) Postgres URL
_PLAIN_SCHEMES = ("postgresql://", "postgres://")


def _with_driver(url: str, driver_scheme: str) -> str:
    for scheme in _PLAIN_SCHEMES:
        if url.startswith(scheme):
            return driver_scheme + url[len(scheme):]
    return url


def _get_database_url() -> str:
    """DATABASE_URL pointed at the asyncpg driver."""
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable must be set.")
    return _with_driver(database_url, "postgresql+asyncpg://")


def get_engine() -> AsyncEngine:
    """Shared async engine, created on first use."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            _get_database_url(),
            echo=os.environ.get("SQL_ECHO", "").lower() == "true",
            pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,  # Timers can sit idle for hours between fires
        )
    return _engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Read-only work: a pooled connection, no explicit transaction.

        async with get_connection() as conn:
            rows = await get_due_events(conn, Transition.end, now)
    """
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """
    Writes: commits when the block exits cleanly, rolls back on exception.

        async with get_transaction() as conn:
            await insert_notification(conn, user_id, title, body, kind)
    """
    async with get_engine().begin() as conn:
        yield conn


async def ping() -> bool:
    """True when the database answers a trivial query."""
    try:
        async with get_connection() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database ping failed: {e}")
        return False
    return True


async def close_engine() -> None:
    """Dispose of the pool. Call on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def is_configured() -> bool:
    return bool(os.environ.get("DATABASE_URL"))


def get_sync_database_url() -> str:
    """psycopg2 URL for Alembic, which migrates synchronously."""
    database_url = os.environ.get("DATABASE_URL", "")
    if database_url.startswith("postgresql+asyncpg://"):
        return "postgresql://" + database_url[len("postgresql+asyncpg://"):]
    if database_url.startswith(_PLAIN_SCHEMES):
        return _with_driver(database_url, "postgresql://")

    raise ValueError("DATABASE_URL must be set for migrations")
