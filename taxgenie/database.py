"""
database.py: SQLAlchemy 2.0 async engine and session factory.

This module owns ALL database connection infrastructure.
Nothing else in the codebase creates engines or sessions directly.

Usage in routes (via dependency injection):
    from taxgenie.database import get_db
    async def my_route(db: AsyncSession = Depends(get_db)): ...
"""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from taxgenie.config import settings


# ---------------------------------------------------------------------------
# Declarative base: ALL ORM models inherit from this
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base.
    All ORM models in taxgenie/models/ inherit from Base.
    """
    pass


# ---------------------------------------------------------------------------
# Async engine: one per application lifetime
# ---------------------------------------------------------------------------
def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {
        "echo": settings.debug,   # SQL only, no amounts in WHERE clauses
        "pool_pre_ping": True,
    }
    if not url.startswith("sqlite"):
        options["pool_size"] = 5
        options["max_overflow"] = 10
    return options


async_engine: AsyncEngine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url),
)

# ---------------------------------------------------------------------------
# Session factory: produces AsyncSession instances
# ---------------------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,   # Keep objects usable after commit without re-querying
)


async def create_tables(engine: AsyncEngine = async_engine) -> None:
    """Create the audit table if missing. Called once from the FastAPI lifespan."""
    # Import registers the ORM classes on Base.metadata
    import taxgenie.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# ---------------------------------------------------------------------------
# FastAPI dependency: yields session, commits or rolls back
# ---------------------------------------------------------------------------
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession per request.

    Commits on success, rolls back on exception, always closes the session.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
