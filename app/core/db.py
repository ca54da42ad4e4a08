from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import settings

Base = declarative_base()


def _normalize_async_url(url: str) -> str:
    # SQLite -> aiosqlite
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    # Postgres common forms -> asyncpg
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def make_async_engine(database_url: str):
    db_url = _normalize_async_url(database_url)

    if db_url.startswith("sqlite+aiosqlite://"):
        # one connection per checkout; sessions may be opened from different loops
        engine = create_async_engine(db_url, poolclass=NullPool)

        @event.listens_for(engine.sync_engine, "connect")
        def _sqlite_pragmas(dbapi_connection, _):
            cur = dbapi_connection.cursor()
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.execute("PRAGMA busy_timeout=5000;")
            cur.close()
    else:
        engine = create_async_engine(db_url, pool_pre_ping=True)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine, session_factory


engine, SessionLocal = make_async_engine(settings.DATABASE_URL)


async def get_db() -> AsyncIterator[AsyncSession]:
    """User-scoped session. Services filter owned rows by the caller's id."""
    async with SessionLocal() as session:
        yield session


async def get_service_db() -> AsyncIterator[AsyncSession]:
    """Privileged session for webhook and admin writes (no owner filters)."""
    async with SessionLocal() as session:
        yield session


async def create_all() -> None:
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
