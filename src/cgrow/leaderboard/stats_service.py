"""Per-user leaderboard stats, recomputed from the ledger on every call.

Totals are never incremented in place: ``total_points`` is always the signed
sum of the user's ledger, and the monthly/quarterly counters are always the
sum over the current calendar period. A period rollover therefore needs no
special reset; the row is simply re-stamped together with the fresh sums.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.config import Settings, get_settings
from cgrow.db.models import UserStats
from cgrow.leaderboard import collaborators, ledger
from cgrow.leaderboard.periods import current_period, month_bounds, quarter_bounds, utc_date
from cgrow.leaderboard.streaks import compute_streak, load_activity_dates

logger = logging.getLogger(__name__)


async def get_stats(db: AsyncSession, user_id: int) -> UserStats | None:
    result = await db.execute(select(UserStats).where(UserStats.user_id == user_id))
    return result.scalar_one_or_none()


async def get_or_create_stats(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> UserStats:
    """Get the stats row for a user (row-locked on PostgreSQL), creating it stamped with the current period."""
    if now is None:
        now = datetime.now(timezone.utc)

    stats = await _select_for_update(db, user_id)
    if stats is None:
        await insert_missing_stats(db, user_id, now)
        stats = await _select_for_update(db, user_id)
    return stats


async def _select_for_update(db: AsyncSession, user_id: int) -> UserStats | None:
    result = await db.execute(
        select(UserStats).where(UserStats.user_id == user_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def insert_missing_stats(db: AsyncSession, user_id: int, now: datetime) -> None:
    """Insert a zeroed stats row unless one already exists.

    Two first awards for the same user may race here; the loser's insert is a
    no-op on the user_id unique constraint instead of an IntegrityError.
    """
    insert = pg_insert if db.get_bind().dialect.name == "postgresql" else sqlite_insert
    stamp = current_period(now)
    stmt = insert(UserStats).values(
        user_id=user_id,
        total_points=0,
        monthly_points=0,
        quarterly_points=0,
        courses_completed=0,
        projects_completed=0,
        badges_earned=0,
        current_streak=0,
        longest_streak=0,
        current_month=stamp.month,
        current_quarter=stamp.quarter,
        current_year=stamp.year,
        last_updated=now,
    )
    await db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))


async def recompute_stats(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> UserStats:
    """Recompute a user's totals, counters and streak from the ledger and collaborators.

    Flushes but does not commit; the caller owns the transaction.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if settings is None:
        settings = get_settings()

    stats = await get_or_create_stats(db, user_id, now)
    stamp = current_period(now)

    month_start, month_end = month_bounds(now)
    quarter_start, quarter_end = quarter_bounds(now)

    total = await ledger.sum_points(db, user_id)
    monthly = await ledger.sum_points(db, user_id, from_time=month_start, to_time=month_end)
    quarterly = await ledger.sum_points(db, user_id, from_time=quarter_start, to_time=quarter_end)

    rolled_over = (stats.current_month, stats.current_quarter, stats.current_year) != (
        stamp.month,
        stamp.quarter,
        stamp.year,
    )
    if rolled_over:
        logger.info(
            "Period rollover for user %d: %s/%s/%s -> %d/%d/%d",
            user_id,
            stats.current_month,
            stats.current_quarter,
            stats.current_year,
            stamp.month,
            stamp.quarter,
            stamp.year,
        )

    activity_dates = await load_activity_dates(db, user_id, now, settings.streak_lookback_days)
    streak = compute_streak(activity_dates, utc_date(now))

    stats.total_points = total
    stats.monthly_points = monthly
    stats.quarterly_points = quarterly
    stats.current_month = stamp.month
    stats.current_quarter = stamp.quarter
    stats.current_year = stamp.year

    stats.courses_completed = await collaborators.count_completed_courses(db, user_id)
    stats.projects_completed = await collaborators.count_completed_projects(db, user_id)
    stats.badges_earned = await collaborators.count_badges(db, user_id)

    stats.current_streak = streak.current
    stats.longest_streak = max(stats.longest_streak or 0, streak.longest, streak.current)
    stats.last_activity_date = activity_dates[0] if activity_dates else stats.last_activity_date
    stats.last_updated = now

    await db.flush()
    return stats
