"""Daily activity streaks computed from distinct ledger dates."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import PointEvent
from cgrow.leaderboard.periods import utc_date


@dataclass(frozen=True)
class Streak:
    current: int
    longest: int


def compute_streak(activity_dates: Iterable[date], today: date) -> Streak:
    """Compute current and longest daily streaks.

    Distinct dates are walked newest-first; consecutive entries one calendar day
    apart extend a run. The current streak only counts if the newest activity is
    today or yesterday.
    """
    days = sorted(set(activity_dates), reverse=True)
    if not days:
        return Streak(current=0, longest=0)

    longest = run = 1
    for newer, older in zip(days, days[1:]):
        run = run + 1 if (newer - older).days == 1 else 1
        longest = max(longest, run)

    current = 0
    if (today - days[0]).days <= 1:
        current = 1
        for newer, older in zip(days, days[1:]):
            if (newer - older).days != 1:
                break
            current += 1

    return Streak(current=current, longest=longest)


async def load_activity_dates(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    lookback_days: int = 365,
) -> list[date]:
    """Distinct UTC dates with at least one ledger event inside the lookback window, newest first."""
    if now is None:
        now = datetime.now(timezone.utc)
    since = now - timedelta(days=lookback_days)

    result = await db.execute(
        select(PointEvent.created_at)
        .where(
            PointEvent.user_id == user_id,
            PointEvent.created_at >= since,
        )
        .order_by(PointEvent.created_at.desc())
    )
    return sorted({utc_date(ts) for ts in result.scalars()}, reverse=True)


async def calculate_streak(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
    lookback_days: int = 365,
) -> Streak:
    """Load a user's activity dates and compute their streak as of now."""
    if now is None:
        now = datetime.now(timezone.utc)
    dates = await load_activity_dates(db, user_id, now, lookback_days)
    return compute_streak(dates, utc_date(now))
