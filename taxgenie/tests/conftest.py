"""
Test configuration for TaxGenie.

  - rule_book: the packaged rule tables, loaded once per session
  - client:    httpx AsyncClient on the ASGI app, with get_db overridden to an
               in-memory SQLite database so no file or server is needed
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taxgenie.database import create_tables, get_db
from taxgenie.main import app
from taxgenie.rules.loader import load_rule_book


@pytest.fixture(scope="session")
def rule_book():
    return load_rule_book()


@pytest_asyncio.fixture
async def client():
    """Async httpx client using ASGI transport, no live server needed."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await create_tables(engine)
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
    await engine.dispose()
