# backend/app/db/session.py
"""
Async database engine and session factory for SQLAlchemy.

Production considerations:
- Uses asyncpg for PostgreSQL
- Uses aiosqlite for SQLite (local development and tests)
- Pool settings differ for SQLite (no pooling) vs PostgreSQL

Security considerations:
- DATABASE_ECHO disabled by default (prevents SQL query exposure)
- Connection pool overflow limited to prevent resource exhaustion
- Pool pre-ping enabled to detect stale connections

Engines are built on demand and owned by the SqlStore that uses them;
nothing here is created at import time.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from backend.app.core.config import settings


def create_engine_for_url(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create and configure an async SQLAlchemy engine.

    SQLite (local development):
    - NullPool, a new connection per unit of work
    - check_same_thread=False for async compatibility

    PostgreSQL (production):
    - AsyncAdaptedQueuePool, pool_size=5, max_overflow=10
    - pool_pre_ping=True: validate connections before use
    - pool_recycle=300: recycle connections every 5 minutes
    """
    url = database_url or settings.DATABASE_URL
    echo = settings.DATABASE_ECHO if echo is None else echo

    if "sqlite" in url.lower():
        return create_async_engine(
            url,
            echo=echo,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        url,
        echo=echo,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False: records can be read after commit
    autoflush=False: explicit flush control, no surprise queries
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
