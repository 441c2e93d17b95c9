"""
SQLAlchemy async database client for the TalkTime notification service.

The engine is created lazily on first use and disposed from the FastAPI
lifespan. Query functions in core/queries take the AsyncConnection handed
out by get_connection() / get_transaction().
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .tables import metadata  # noqa: F401 - exported for Alembic

_engine: AsyncEngine | None = None

_SCHEMES = ("postgres://", "postgresql://", "postgresql+asyncpg://")


def _strip_scheme(database_url: str) -> str:
    for scheme in _SCHEMES:
        if database_url.startswith(scheme):
            return database_url[len(scheme):]
    raise ValueError(f"Unsupported DATABASE_URL scheme: {database_url.split(':', 1)[0]}")


def _get_database_url() -> str:
    """Return DATABASE_URL rewritten for the asyncpg driver."""
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable must be set")
    return "postgresql+asyncpg://" + _strip_scheme(database_url)


def get_engine() -> AsyncEngine:
    """Get or create the async SQLAlchemy engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            _get_database_url(),
            echo=os.environ.get("SQL_ECHO", "").lower() == "true",
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
    return _engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Read-only connection from the pool.

    Usage:
        async with get_connection() as conn:
            row = await get_recipient(conn, user_id, role)
    """
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """Connection inside a transaction: commits on success, rolls back on error."""
    async with get_engine().begin() as conn:
        yield conn


async def close_engine() -> None:
    """Close the engine and all connections. Call on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def is_configured() -> bool:
    """Check if database credentials are configured."""
    return bool(os.environ.get("DATABASE_URL"))


def get_sync_database_url() -> str:
    """psycopg2 URL for Alembic, which runs migrations synchronously."""
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL must be set for migrations")
    return "postgresql://" + _strip_scheme(database_url)
