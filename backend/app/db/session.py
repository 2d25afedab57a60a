"""
Async engine and session factory.

PostgreSQL is the production store; seat rows are locked with
SELECT ... FOR UPDATE and waits are bounded by `lock_timeout`.

SQLite (local runs and tests) has no row locks, so every transaction is
opened with BEGIN IMMEDIATE: the database-wide write lock is taken up front
and the busy timeout bounds the wait.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import get_settings


def _enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        # Stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False, lock_timeout_ms: Optional[int] = None) -> AsyncEngine:
    settings = get_settings()
    if url.startswith("sqlite"):
        busy_timeout_ms = lock_timeout_ms if lock_timeout_ms is not None else settings.LOCK_TIMEOUT_MS
        engine = create_async_engine(
            url,
            echo=echo,
            poolclass=NullPool,
            connect_args={"timeout": busy_timeout_ms / 1000},
        )
        _enable_sqlite_immediate_transactions(engine)
        return engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


engine = build_engine(get_settings().DATABASE_URL, echo=get_settings().DB_ECHO)
AsyncSessionLocal = build_session_factory(engine)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency: services open their own transaction from this factory."""
    return AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency: read-only session for catalog lookups."""
    async with AsyncSessionLocal() as session:
        yield session
