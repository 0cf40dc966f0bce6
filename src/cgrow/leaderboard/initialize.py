"""Backfill leaderboard stats for every existing user, then rank them.

Safe to run repeatedly and alongside live awards: each user is recomputed
from the ledger in its own short transaction.

    python -m cgrow.leaderboard.initialize
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.config import Settings, get_settings
from cgrow.db.models import User
from cgrow.leaderboard.ranking_service import recompute_rankings
from cgrow.leaderboard.stats_service import recompute_stats

logger = logging.getLogger(__name__)


async def initialize_leaderboard(
    db: AsyncSession,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> int:
    """Recompute stats for all users and the ranking. Returns the number of users processed."""
    if now is None:
        now = datetime.now(timezone.utc)
    if settings is None:
        settings = get_settings()

    result = await db.execute(select(User.id).order_by(User.id))
    user_ids = list(result.scalars())

    for user_id in user_ids:
        try:
            await recompute_stats(db, user_id, now, settings)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    try:
        await recompute_rankings(db, settings.ranking_period_field)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Leaderboard initialized for %d users", len(user_ids))
    return len(user_ids)


async def _main() -> None:
    from cgrow.database import close_db, get_session_factory, init_db
    from cgrow.middleware.logging import setup_logging

    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    try:
        async with get_session_factory()() as db:
            await initialize_leaderboard(db, settings=settings)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(_main())
