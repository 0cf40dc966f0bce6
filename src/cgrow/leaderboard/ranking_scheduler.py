"""Single-consumer ranking refresh.

Awards only mark the ranking dirty. One consumer per process recomputes it in
its own transaction, at most once every ``min_interval_seconds``; signals that
arrive while a recompute is running coalesce into one follow-up pass. Across
processes the dirty flag lives in Redis and the arq ``refresh_rankings`` cron
picks it up.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog
from redis.exceptions import LockError, RedisError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cgrow.leaderboard.constants import CHANNEL_LEADERBOARD_UPDATE, RANKING_DIRTY_KEY, RANKING_LOCK_KEY
from cgrow.leaderboard.events import publish
from cgrow.leaderboard.ranking_service import recompute_rankings

logger = structlog.get_logger()


async def mark_ranking_dirty(redis: object | None) -> None:
    """Flag the ranking as stale for any process running the refresh cron."""
    if redis is None:
        return
    try:
        await redis.set(RANKING_DIRTY_KEY, datetime.now(timezone.utc).isoformat())  # type: ignore[union-attr]
    except Exception:
        logger.warning("ranking_dirty_flag_failed", exc_info=True)


async def run_ranking_refresh(
    session_factory: async_sessionmaker[AsyncSession],
    redis: object | None,
    period_field: str = "total_points",
    lock_timeout_seconds: int = 30,
) -> int:
    """Recompute rankings in a fresh transaction, under the Redis lock when Redis is reachable.

    Raises LockError if another process holds the lock. If Redis is down the
    recompute still runs, serialized by the in-process and database locks only.
    """
    if redis is None:
        return await _recompute_and_commit(session_factory, period_field)

    lock = redis.lock(  # type: ignore[union-attr]
        RANKING_LOCK_KEY,
        timeout=lock_timeout_seconds,
        blocking_timeout=lock_timeout_seconds,
    )
    try:
        acquired = await lock.acquire()
    except RedisError:
        logger.warning("ranking_lock_unavailable", exc_info=True)
        acquired = None
    if acquired is False:
        raise LockError("Ranking lock is held by another process")

    try:
        ranked = await _recompute_and_commit(session_factory, period_field)
    finally:
        if acquired:
            try:
                await lock.release()
            except RedisError:
                logger.warning("ranking_lock_release_failed", exc_info=True)

    await publish(redis, CHANNEL_LEADERBOARD_UPDATE, {
        "period_field": period_field,
        "ranked": ranked,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    })
    return ranked


async def _recompute_and_commit(
    session_factory: async_sessionmaker[AsyncSession],
    period_field: str,
) -> int:
    async with session_factory() as db:
        try:
            ranked = await recompute_rankings(db, period_field)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    return ranked


class RankingScheduler:
    """In-process single consumer of "ranking dirty" signals."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        redis: object | None = None,
        period_field: str = "total_points",
        min_interval_seconds: float = 5.0,
        lock_timeout_seconds: int = 30,
    ) -> None:
        self._session_factory = session_factory
        self._redis = redis
        self.period_field = period_field
        self.min_interval_seconds = min_interval_seconds
        self.lock_timeout_seconds = lock_timeout_seconds
        self._dirty = asyncio.Event()
        self._running = False
        self._task: asyncio.Task | None = None
        self.runs = 0

    @property
    def pending(self) -> bool:
        return self._dirty.is_set()

    def mark_dirty(self) -> None:
        """Request a recompute. Cheap and safe to call many times."""
        self._dirty.set()

    def start(self) -> None:
        if self._task is not None:
            return
        self._running = True
        self._task = asyncio.create_task(self._run(), name="ranking-scheduler")
        logger.info(
            "ranking_scheduler_started",
            period_field=self.period_field,
            min_interval_seconds=self.min_interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the consumer, then flush any pending recompute."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        await self.drain()
        logger.info("ranking_scheduler_stopped", runs=self.runs)

    async def drain(self) -> bool:
        """Run one recompute now if one is pending. Returns True if it ran."""
        if not self._dirty.is_set():
            return False
        self._dirty.clear()
        await self._refresh()
        return True

    async def _refresh(self) -> None:
        try:
            ranked = await run_ranking_refresh(
                self._session_factory,
                self._redis,
                self.period_field,
                self.lock_timeout_seconds,
            )
        except LockError:
            # Another process holds the lock; try again on the next pass
            logger.warning("ranking_lock_busy")
            self._dirty.set()
            return
        self.runs += 1
        logger.info("ranking_refreshed", period_field=self.period_field, ranked=ranked)

    async def _run(self) -> None:
        while self._running:
            await self._dirty.wait()
            self._dirty.clear()
            try:
                await self._refresh()
            except Exception:
                logger.exception("ranking_refresh_failed")
                self._dirty.set()
            await asyncio.sleep(self.min_interval_seconds)


_scheduler: RankingScheduler | None = None


def init_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    redis: object | None,
    period_field: str,
    min_interval_seconds: float,
    lock_timeout_seconds: int,
) -> RankingScheduler:
    """Create and start the process-wide ranking scheduler."""
    global _scheduler  # noqa: PLW0603
    _scheduler = RankingScheduler(
        session_factory,
        redis=redis,
        period_field=period_field,
        min_interval_seconds=min_interval_seconds,
        lock_timeout_seconds=lock_timeout_seconds,
    )
    _scheduler.start()
    return _scheduler


async def close_scheduler() -> None:
    global _scheduler  # noqa: PLW0603
    if _scheduler is not None:
        try:
            await _scheduler.stop()
        finally:
            _scheduler = None


def get_scheduler() -> RankingScheduler | None:
    return _scheduler
