"""
Database engine and session management for the card catalog.

The catalog lives in a single SQLite file by default; any async SQLAlchemy
URL can be set with the DATABASE_URL environment variable.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from memorymatch.config import settings
from memorymatch.models.db import Base


def make_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine for a database URL (defaults to settings)."""
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )


engine = make_engine()

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields a session and commits when the request succeeds.

    Usage in FastAPI:
        @router.get("/api/cards")
        async def list_all(session: AsyncSession = Depends(get_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create the cards table if it does not exist yet."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
