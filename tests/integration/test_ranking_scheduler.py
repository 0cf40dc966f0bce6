"""Deferred ranking: the single in-process consumer and the Redis dirty flag."""

import asyncio

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select

from cgrow.db.models import UserStats
from cgrow.leaderboard.constants import CHANNEL_LEADERBOARD_UPDATE, RANKING_DIRTY_KEY
from cgrow.leaderboard.ranking_scheduler import RankingScheduler, mark_ranking_dirty
from tests.factories import create_stats, create_user


class FakeRedis:
    """Records set() and publish() calls; lock() hands out the given lock."""

    def __init__(self, lock=None):
        self.values: dict[str, str] = {}
        self.published: list[str] = []
        self._lock = lock or BusyLock()

    async def set(self, key, value):
        self.values[key] = value

    async def publish(self, channel, _message):
        self.published.append(channel)

    def lock(self, *_args, **_kwargs):
        return self._lock


class BusyLock:
    """Another process holds the ranking lock."""

    async def acquire(self):
        return False

    async def release(self):
        raise AssertionError("released a lock that was never acquired")


class UnreachableLock:
    """Redis is down: every lock call fails to connect."""

    async def acquire(self):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    async def release(self):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


class DownRedis(FakeRedis):
    def __init__(self):
        super().__init__(lock=UnreachableLock())

    async def publish(self, channel, _message):
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


@pytest_asyncio.fixture
async def ranked_users(session_factory):
    async with session_factory() as db:
        for user_id, total in [(1, 300), (2, 100), (3, 200)]:
            await create_user(db, user_id)
            await create_stats(db, user_id, total_points=total)
    return session_factory


async def positions(session_factory) -> dict[int, int | None]:
    async with session_factory() as db:
        result = await db.execute(select(UserStats.user_id, UserStats.ranking_position))
        return {row.user_id: row.ranking_position for row in result}


class TestDrain:
    @pytest.mark.asyncio
    async def test_nothing_pending(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, min_interval_seconds=0)
        assert await scheduler.drain() is False
        assert await positions(ranked_users) == {1: None, 2: None, 3: None}

    @pytest.mark.asyncio
    async def test_pending_signal_recomputes(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, min_interval_seconds=0)
        scheduler.mark_dirty()
        scheduler.mark_dirty()

        assert await scheduler.drain() is True
        assert await scheduler.drain() is False
        assert scheduler.runs == 1
        assert await positions(ranked_users) == {1: 1, 2: 3, 3: 2}


class TestBackgroundConsumer:
    @pytest.mark.asyncio
    async def test_burst_of_signals_coalesces(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, min_interval_seconds=0.5)
        scheduler.start()
        try:
            for _ in range(10):
                scheduler.mark_dirty()
            for _ in range(100):
                if scheduler.runs:
                    break
                await asyncio.sleep(0.01)
            assert scheduler.runs == 1
        finally:
            await scheduler.stop()

        assert await positions(ranked_users) == {1: 1, 2: 3, 3: 2}

    @pytest.mark.asyncio
    async def test_stop_flushes_pending_signal(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, min_interval_seconds=0)
        scheduler.mark_dirty()
        await scheduler.stop()
        assert scheduler.runs == 1
        assert scheduler.pending is False

    @pytest.mark.asyncio
    async def test_busy_redis_lock_keeps_signal(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, redis=FakeRedis(), min_interval_seconds=0)
        scheduler.mark_dirty()
        assert await scheduler.drain() is True
        assert scheduler.runs == 0
        assert scheduler.pending is True


class TestDirtyFlag:
    @pytest.mark.asyncio
    async def test_sets_redis_key(self):
        redis = FakeRedis()
        await mark_ranking_dirty(redis)
        assert RANKING_DIRTY_KEY in redis.values

    @pytest.mark.asyncio
    async def test_without_redis_is_noop(self):
        await mark_ranking_dirty(None)


class TestRedisUnavailable:
    @pytest.mark.asyncio
    async def test_drain_recomputes_without_the_lock(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, redis=DownRedis(), min_interval_seconds=0)
        scheduler.mark_dirty()

        assert await scheduler.drain() is True

        assert scheduler.runs == 1
        assert scheduler.pending is False
        assert await positions(ranked_users) == {1: 1, 2: 3, 3: 2}

    @pytest.mark.asyncio
    async def test_stop_flushes_without_raising(self, ranked_users):
        scheduler = RankingScheduler(ranked_users, redis=DownRedis(), min_interval_seconds=0)
        scheduler.start()
        scheduler.mark_dirty()
        await scheduler.stop()

        assert await positions(ranked_users) == {1: 1, 2: 3, 3: 2}


class TestLockRelease:
    @pytest.mark.asyncio
    async def test_lock_released_and_update_published(self, ranked_users):
        lock = RecordingLock()
        redis = FakeRedis(lock=lock)
        scheduler = RankingScheduler(ranked_users, redis=redis, min_interval_seconds=0)
        scheduler.mark_dirty()

        await scheduler.drain()

        assert lock.calls == ["acquire", "release"]
        assert redis.published == [CHANNEL_LEADERBOARD_UPDATE]


class RecordingLock:
    def __init__(self):
        self.calls: list[str] = []

    async def acquire(self):
        self.calls.append("acquire")
        return True

    async def release(self):
        self.calls.append("release")
