"""Database connection and session management for Breezeline.

Provides async SQLAlchemy session management with connection pooling.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from breezeline.config import DBConfig, get_config
from breezeline.db.models import Base

# Global engine instance
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

# Anything that, when called, opens a committing session scope (get_session does)
SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def build_engine(db_config: DBConfig) -> AsyncEngine:
    """Create an engine for one database configuration."""
    url = db_config.url
    if "sqlite" in url.lower():
        engine_kwargs: dict = {"echo": db_config.echo}
        if ":memory:" in url:
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs.update(
                {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
            )
        engine = create_async_engine(url, **engine_kwargs)

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_async_engine(
        url,
        echo=db_config.echo,
        pool_size=db_config.pool_size,
        max_overflow=db_config.pool_max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,
    )


def get_engine() -> AsyncEngine:
    """Get or create singleton async engine."""
    global _engine

    if _engine is None:
        _engine = build_engine(get_config().db)

    return _engine


def _sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = _sessionmaker(get_engine())

    return _session_factory


@asynccontextmanager
async def _committing(factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    session = factory()

    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def get_session() -> AbstractAsyncContextManager[AsyncSession]:
    """Get async database session (context manager).

    Commits when the block exits cleanly, rolls back on any exception.

    Usage:
        async with get_session() as session:
            session.add(model)
    """
    return _committing(get_session_factory())


def session_scope(engine: AsyncEngine) -> SessionFactory:
    """Committing session factory bound to ``engine`` instead of the global one."""
    factory = _sessionmaker(engine)
    return lambda: _committing(factory)


async def init_db(drop: bool = False, engine: AsyncEngine | None = None) -> None:
    """Create all tables (drop first when asked).

    Existing tables are left untouched unless drop is set.
    """
    async with (engine or get_engine()).begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database engine and dispose connections.

    Call this on application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
