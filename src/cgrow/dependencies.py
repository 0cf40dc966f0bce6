"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.config import get_settings
from cgrow.database import get_session
from cgrow.leaderboard.award_service import AwardCoordinator
from cgrow.redis_client import get_optional_redis


async def get_redis_dep() -> AsyncGenerator[object | None, None]:
    """Yield the Redis client, or None if Redis is not configured."""
    yield get_optional_redis()


async def get_award_coordinator(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    redis: object | None = Depends(get_redis_dep),  # noqa: B008
) -> AwardCoordinator:
    """Award coordinator bound to the request's session."""
    return AwardCoordinator(db, redis, get_settings())
