"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database (aiosqlite) with the full
schema created from the ORM metadata. Redis is not used; services accept
``redis=None`` and skip publishing.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cgrow.config import Settings
from cgrow.database import get_session
from cgrow.db.base import Base
from cgrow.dependencies import get_award_coordinator, get_redis_dep
from cgrow.leaderboard.award_service import AwardCoordinator

@pytest.fixture
def settings() -> Settings:
    """Test settings: inline ranking so positions are visible right after an award."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        ranking_mode="inline",
        log_format="console",
        award_timeout_seconds=5.0,
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def coordinator(db_session: AsyncSession, settings: Settings) -> AwardCoordinator:
    return AwardCoordinator(db_session, None, settings)


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the test database and no Redis."""
    from cgrow.main import create_app

    app = create_app()

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def _no_redis() -> AsyncGenerator[None, None]:
        yield None

    async def _coordinator(db: AsyncSession = Depends(get_session)) -> AwardCoordinator:  # noqa: B008
        return AwardCoordinator(db, None, settings)

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_redis_dep] = _no_redis
    app.dependency_overrides[get_award_coordinator] = _coordinator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
