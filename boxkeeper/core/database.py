"""
Database engine, session factory and schema bootstrap.

PostgreSQL (asyncpg) in production, SQLite (aiosqlite) for development and
tests. Both go through ``build_engine`` so SQLite always enforces foreign keys,
which ``ON DELETE SET NULL`` on boxes and QR codes depends on.
"""
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData, event

from boxkeeper.core.config import get_settings

settings = get_settings()

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """Base class for all database models."""
    metadata = metadata


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **engine_kwargs) -> AsyncEngine:
    """
    Create an async engine for ``database_url``.

    Extra keyword arguments are passed to ``create_async_engine`` and win
    over the defaults (tests pass ``poolclass=StaticPool`` this way).
    """
    engine_kwargs.setdefault("echo", settings.DEBUG)

    if database_url.startswith("sqlite"):
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        engine = create_async_engine(database_url, **engine_kwargs)
        event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
        return engine

    engine_kwargs.setdefault("pool_size", settings.DATABASE_POOL_SIZE)
    engine_kwargs.setdefault("max_overflow", settings.DATABASE_MAX_OVERFLOW)
    return create_async_engine(database_url, **engine_kwargs)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Services read ids and timestamps after commit
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
async_session_maker = build_session_maker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create any missing tables on ``bind`` (the application engine by default)."""
    # Import all model modules so that metadata is populated before create_all
    from boxkeeper.models import (
        workspace,  # noqa: F401
        location,  # noqa: F401
        box,  # noqa: F401
        qr_code,  # noqa: F401
    )

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Close pooled connections on shutdown."""
    await engine.dispose()
