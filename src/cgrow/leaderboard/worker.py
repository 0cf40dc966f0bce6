"""arq worker: cross-process ranking refresh and on-demand leaderboard initialization.

Run with ``arq cgrow.leaderboard.worker.LeaderboardWorkerSettings``.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from arq import cron
from arq.connections import RedisSettings

from cgrow.config import get_settings
from cgrow.database import close_db, get_session_factory, init_db
from cgrow.leaderboard.constants import RANKING_DIRTY_KEY
from cgrow.leaderboard.initialize import initialize_leaderboard
from cgrow.leaderboard.ranking_scheduler import run_ranking_refresh
from cgrow.middleware.logging import setup_logging

logger = logging.getLogger(__name__)


async def refresh_rankings(ctx: dict, force: bool = False) -> int:
    """Recompute rankings if any process flagged them dirty. Runs every 30 seconds.

    Returns the number of ranked rows, or 0 when nothing was pending.
    """
    redis_client: aioredis.Redis = ctx["redis"]
    settings = get_settings()

    flagged = await redis_client.getdel(RANKING_DIRTY_KEY)
    if flagged is None and not force:
        return 0

    try:
        ranked = await run_ranking_refresh(
            get_session_factory(),
            redis_client,
            settings.ranking_period_field,
            settings.ranking_lock_timeout_seconds,
        )
    except Exception:
        # Leave the flag set so the next tick retries
        await redis_client.set(RANKING_DIRTY_KEY, flagged or "retry")
        raise

    logger.info("Rankings refreshed by worker: %d rows (flagged at %s)", ranked, flagged)
    return ranked


async def run_initialize_leaderboard(ctx: dict) -> int:  # noqa: ARG001
    """Backfill stats for all users, then rank them."""
    async with get_session_factory()() as db:
        return await initialize_leaderboard(db)


async def leaderboard_startup(ctx: dict) -> None:
    """Initialize Redis + DB connections on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)

    ctx["redis"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    logger.info("Leaderboard worker started")


async def leaderboard_shutdown(ctx: dict) -> None:
    """Clean up on worker shutdown."""
    redis_client = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Leaderboard worker shut down")


class LeaderboardWorkerSettings:
    """arq worker settings for leaderboard maintenance."""

    functions = [refresh_rankings, run_initialize_leaderboard]
    cron_jobs = [
        cron(refresh_rankings, second={0, 30}, run_at_startup=True),
    ]
    on_startup = leaderboard_startup
    on_shutdown = leaderboard_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 2
    job_timeout = 300
