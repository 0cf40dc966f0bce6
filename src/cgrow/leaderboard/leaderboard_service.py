"""Read side of the leaderboard: rankings, positions, achievements and insights.

Positions are computed from live scores (count of strictly greater scores + 1)
rather than the stored ranking_position, which may lag behind deferred
ranking recomputes. Point values are clamped at zero for display only.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cgrow.db.models import Achievement, User, UserAchievement, UserStats
from cgrow.leaderboard import ledger
from cgrow.leaderboard.periods import period_field


def _display(points: int | None) -> int:
    return max(points or 0, 0)


def _user_summary(user: User | None, user_id: int) -> dict[str, Any]:
    if user is None:
        return {"id": user_id, "name": None, "department": None, "position": None, "profile_image": None}
    return {
        "id": user.id,
        "name": user.display_name,
        "department": user.department,
        "position": user.position,
        "profile_image": user.profile_image,
    }


def _entry(rank: int, stats: UserStats, user: User | None, field: str) -> dict[str, Any]:
    return {
        "rank": rank,
        "user": _user_summary(user, stats.user_id),
        "points": _display(getattr(stats, field)),
        "total_points": _display(stats.total_points),
        "monthly_points": _display(stats.monthly_points),
        "quarterly_points": _display(stats.quarterly_points),
        "courses_completed": stats.courses_completed,
        "projects_completed": stats.projects_completed,
        "badges_earned": stats.badges_earned,
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
    }


async def get_leaderboard(
    db: AsyncSession,
    period: str = "all",
    limit: int = 50,
    department: str | None = None,
) -> list[dict[str, Any]]:
    """Users with a positive score for the period, best first, rank = index + 1."""
    field = period_field(period)
    column = getattr(UserStats, field)

    stmt = (
        select(UserStats, User)
        .outerjoin(User, User.id == UserStats.user_id)
        .where(column > 0)
        .order_by(column.desc(), UserStats.user_id.asc())
        .limit(limit)
    )
    if department is not None:
        stmt = stmt.where(User.department == department)

    result = await db.execute(stmt)
    return [
        _entry(rank, row.UserStats, row.User, field)
        for rank, row in enumerate(result.all(), start=1)
    ]


async def get_user_position(
    db: AsyncSession,
    user_id: int,
    period: str = "all",
) -> dict[str, Any] | None:
    """A single user's live rank for the period, or None if they have no stats yet."""
    field = period_field(period)
    column = getattr(UserStats, field)

    result = await db.execute(
        select(UserStats, User)
        .outerjoin(User, User.id == UserStats.user_id)
        .where(UserStats.user_id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        return None

    score = getattr(row.UserStats, field)
    ahead = await db.execute(
        select(func.count()).select_from(UserStats).where(column > score)
    )
    return _entry(int(ahead.scalar_one()) + 1, row.UserStats, row.User, field)


def _achievement_dict(achievement: Achievement) -> dict[str, Any]:
    return {
        "id": achievement.id,
        "name": achievement.name,
        "description": achievement.description,
        "achievement_type": achievement.achievement_type,
        "criteria_value": achievement.criteria_value,
        "points_reward": achievement.points_reward,
        "badge_image": achievement.badge_image,
    }


async def get_user_achievements(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """Unlocked achievements (newest first), still-locked active ones, and overall progress."""
    unlocked_result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.unlocked_at.desc(), UserAchievement.id.desc())
    )
    unlocks = list(unlocked_result.unique().scalars())

    active_result = await db.execute(
        select(Achievement)
        .where(Achievement.is_active.is_(True))
        .order_by(Achievement.criteria_value.asc(), Achievement.id.asc())
    )
    active = list(active_result.scalars())

    unlocked_ids = {u.achievement_id for u in unlocks}
    total = len(active)
    completion = round(len(unlocks) / total * 100, 1) if total else 0.0

    return {
        "unlocked": [
            {**_achievement_dict(u.achievement), "unlocked_at": u.unlocked_at}
            for u in unlocks
        ],
        "locked": [_achievement_dict(a) for a in active if a.id not in unlocked_ids],
        "progress": {
            "unlocked_count": len(unlocks),
            "total_count": total,
            "completion_percentage": completion,
        },
    }


async def get_leaderboard_stats(db: AsyncSession) -> dict[str, Any]:
    """Participation overview, top performer and the most unlocked achievements."""
    total_users = (await db.execute(select(func.count()).select_from(UserStats))).scalar_one()
    active_users = (
        await db.execute(select(func.count()).select_from(UserStats).where(UserStats.total_points > 0))
    ).scalar_one()
    average = (await db.execute(select(func.avg(UserStats.total_points)))).scalar_one()
    total_awarded = await ledger.total_awarded(db)

    top_result = await db.execute(
        select(UserStats, User)
        .outerjoin(User, User.id == UserStats.user_id)
        .order_by(UserStats.total_points.desc(), UserStats.user_id.asc())
        .limit(1)
    )
    top = top_result.one_or_none()

    unlock_count = func.count(UserAchievement.user_id).label("unlock_count")
    popular_result = await db.execute(
        select(Achievement.name, unlock_count)
        .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
        .group_by(Achievement.id, Achievement.name)
        .order_by(unlock_count.desc(), Achievement.name.asc())
        .limit(5)
    )

    return {
        "overview": {
            "total_users": total_users,
            "active_users": active_users,
            "participation_rate": round(active_users / total_users * 100, 1) if total_users else 0.0,
            "total_points_awarded": total_awarded,
            "average_points": round(float(average)) if average is not None else 0,
        },
        "top_performer": (
            {
                "user_id": top.UserStats.user_id,
                "name": top.User.display_name if top.User else None,
                "department": top.User.department if top.User else None,
                "points": _display(top.UserStats.total_points),
                "streak": top.UserStats.current_streak,
            }
            if top is not None
            else None
        ),
        "popular_achievements": [
            {"name": row.name, "unlock_count": row.unlock_count}
            for row in popular_result
        ],
    }


async def get_recent_activity(
    db: AsyncSession,
    user_id: int | None = None,
    limit: int = 20,
) -> list[dict[str, Any]]:
    """Newest-first ledger events, for one user or everyone."""
    events = await ledger.list_recent(db, user_id=user_id, limit=limit)
    return [
        {
            "id": e.id,
            "user_id": e.user_id,
            "points_type": e.points_type,
            "points_earned": e.points_earned,
            "source_id": e.source_id,
            "source_type": e.source_type,
            "description": e.description,
            "created_at": e.created_at,
        }
        for e in events
    ]
