"""arq cron task that applies cross-process ranking signals."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from cgrow.db.models import UserStats
from cgrow.leaderboard import worker
from cgrow.leaderboard.constants import CHANNEL_LEADERBOARD_UPDATE, RANKING_DIRTY_KEY
from tests.factories import create_stats, create_user


class FreeLock:
    async def acquire(self):
        return True

    async def release(self):
        pass


class WorkerRedis:
    """Just enough of redis.asyncio.Redis for the refresh task."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.published: list[str] = []

    async def getdel(self, key):
        return self.values.pop(key, None)

    async def set(self, key, value):
        self.values[key] = value

    async def publish(self, channel, _message):
        self.published.append(channel)

    def lock(self, *_args, **_kwargs):
        return FreeLock()


@pytest_asyncio.fixture
async def worker_ctx(session_factory, monkeypatch):
    async with session_factory() as db:
        for user_id, total in [(1, 50), (2, 500)]:
            await create_user(db, user_id)
            await create_stats(db, user_id, total_points=total)
    monkeypatch.setattr(worker, "get_session_factory", lambda: session_factory)
    return {"redis": WorkerRedis()}


class TestRefreshRankings:
    @pytest.mark.asyncio
    async def test_no_flag_is_a_no_op(self, worker_ctx):
        assert await worker.refresh_rankings(worker_ctx) == 0
        assert worker_ctx["redis"].published == []

    @pytest.mark.asyncio
    async def test_flag_is_consumed(self, worker_ctx, session_factory):
        redis = worker_ctx["redis"]
        redis.values[RANKING_DIRTY_KEY] = "2026-11-18T12:00:00+00:00"

        assert await worker.refresh_rankings(worker_ctx) == 2

        assert RANKING_DIRTY_KEY not in redis.values
        assert redis.published == [CHANNEL_LEADERBOARD_UPDATE]
        async with session_factory() as db:
            result = await db.execute(select(UserStats.user_id, UserStats.ranking_position))
            assert dict(result.all()) == {1: 2, 2: 1}

    @pytest.mark.asyncio
    async def test_force_without_flag(self, worker_ctx):
        assert await worker.refresh_rankings(worker_ctx, force=True) == 2
