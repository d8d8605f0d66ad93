"""Database session management."""

from __future__ import annotations

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from ..core.config import settings

DATABASE_URL = settings.database_url or "sqlite+aiosqlite:///./triflow.db"

engine = create_async_engine(
    DATABASE_URL,
    echo=settings.debug,
    future=True,
)


def create_session_factory(bind: AsyncEngine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async_session_factory = create_session_factory(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database tables."""
    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    async with async_session_factory() as session:
        yield session
