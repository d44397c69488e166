"""
Database configuration and session management for the metadata store.
Uses SQLAlchemy async engine (PostgreSQL via asyncpg in production).

The uploader owns its engine; nothing here reads global settings so the
signing service never needs database access.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from app.models.base import Base


def create_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create the async engine for the metadata database."""
    options = {
        "echo": False,  # Disable SQLAlchemy query logging
        "pool_pre_ping": True,
    }
    options.update(kwargs)
    return create_async_engine(database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create the async session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database: create tables.
    Existing tables are left untouched.
    """
    # Register models on the metadata
    from app.models.gallery import Gallery  # noqa: F401
    from app.models.media import Media  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
