"""Database configuration and session management."""

from typing import Any, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.core.settings import settings


def build_engine(url: str, **kwargs: Any) -> AsyncEngine:
    """
    Create an async engine for ``url``.

    SQLite URLs get a thread-agnostic connection, and an in-memory SQLite
    database shares one connection so every session sees the same tables.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if parsed.database in (None, "", ":memory:"):
            kwargs.setdefault("poolclass", StaticPool)
    else:
        kwargs.setdefault("pool_pre_ping", True)
    kwargs.setdefault("echo", settings.env == "dev")
    return create_async_engine(url, **kwargs)


# Create async engine
engine = build_engine(settings.database_url)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all timetable and calendar models."""

    pass


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create calendar and timetable tables on ``bind`` (the app engine by default)."""
    # Models live in app.models and import Base from here
    from app import models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
