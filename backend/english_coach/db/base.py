"""Database base class and session management.

This module provides:
- SQLAlchemy base class for declarative models
- Lazily created async engine and session factory
- Table creation and engine disposal helpers
"""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from ..core.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_options(url: str) -> dict[str, Any]:
    """Pool options for the given database URL.

    SQLite (used for local runs and tests) shares one connection so an
    in-memory database survives across sessions.
    """
    settings = get_settings()
    if url.startswith("sqlite"):
        return {
            "echo": settings.DB_ECHO,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "echo": settings.DB_ECHO,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }


def configure_database(url: Optional[str] = None) -> AsyncEngine:
    """Create the engine and session factory, replacing any previous ones."""
    global _engine, _session_maker

    url = url or get_settings().DATABASE_URL
    _engine = create_async_engine(url, **_engine_options(url))
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return _engine


def get_engine() -> AsyncEngine:
    """Get or create the database engine."""
    if _engine is None:
        return configure_database()
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker."""
    if _session_maker is None:
        configure_database()
    return _session_maker


async def init_databases() -> None:
    """Create all tables."""
    from . import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_all() -> None:
    """Close all database connections."""
    global _engine, _session_maker

    if _engine is not None:
        await _engine.dispose()

    _engine = None
    _session_maker = None
