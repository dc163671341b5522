"""
Database engine and the per-request session dependency.

PostgreSQL (asyncpg) gets a sized connection pool from ``Settings``; SQLite
(aiosqlite) keeps SQLAlchemy's default pool, which is what local runs and
the test suite use.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vantrack.core.config import settings


def engine_options(database_url: str) -> dict:
    options = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# Rows stay readable after commit; services return them to the routers.
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session
